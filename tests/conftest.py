"""Конфигурация и фикстуры для тестов Pytest."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from inventory_bot.db.models import Category, Product

# Используем асинхронный драйвер для SQLite для тестов
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Фикстура для создания асинхронного движка с чистой БД для каждого теста.

    StaticPool держит одно соединение, иначе у каждого соединения была бы
    своя пустая in-memory база.
    """
    async_engine = create_async_engine(
        TEST_DATABASE_URL, echo=False, poolclass=StaticPool
    )
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_engine

    await async_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Фикстура, создающая фабрику сессий для тестов.
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Фикстура, предоставляющая сессию БД для каждого теста.
    """
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
async def hardware(session: AsyncSession) -> Category:
    """Категория "Hardware", уже сохраненная в БД."""
    category = Category(name="Hardware")
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category


@pytest.fixture
async def widget(session: AsyncSession, hardware: Category) -> Product:
    """Товар "Widget" в категории "Hardware"."""
    product = Product(
        name="Widget",
        description="Small widget",
        quantity=20,
        product_id="PRD-WIDGET01",
        low_stock_threshold=10,
        category_id=hardware.id,
    )
    session.add(product)
    await session.commit()
    await session.refresh(product)
    return product
