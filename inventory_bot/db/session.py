"""Настройка сессии базы данных."""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from inventory_bot.core.config import settings

# Один движок на процесс; сессии создаются на каждый апдейт Telegram
# через DbSessionMiddleware.
async_engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
)

# expire_on_commit=False: товары и категории читаются после commit
# при формировании ответа пользователю.
AsyncSessionFactory = async_sessionmaker(
    async_engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)

