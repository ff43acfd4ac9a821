"""Настройки конфигурации приложения."""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Загружает настройки из переменных окружения и файла .env.

    Обязательны параметры PostgreSQL, Redis и Telegram. Уровень логов и
    задержка поиска имеют значения по умолчанию.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # PostgreSQL: товары и категории
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int = 5432

    # Redis: состояние FSM и фильтры списка каждого пользователя
    REDIS_HOST: str
    REDIS_PORT: int = 6379

    # Telegram
    BOT_TOKEN: str
    BASE_WEBHOOK_URL: str
    WEBHOOK_SECRET: str

    LOG_LEVEL: str = "INFO"
    # Пауза во вводе перед применением /search, в секундах
    SEARCH_DEBOUNCE_SECONDS: float = Field(default=0.3, ge=0)

    @field_validator("LOG_LEVEL")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Неизвестный уровень логирования: {value}")
        return level

    @field_validator("BASE_WEBHOOK_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def webhook_url(self) -> str:
        """
        Собирает полный URL для вебхука.

        Returns:
            Полный URL вебхука.
        """
        return f"{self.BASE_WEBHOOK_URL}/telegram/webhook/{self.BOT_TOKEN}"

    def _postgres_url(self, driver: str) -> str:
        return (
            f"postgresql+{driver}://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def database_url(self) -> str:
        """Строка подключения для асинхронного движка приложения."""
        return self._postgres_url("asyncpg")

    @property
    def migrations_database_url(self) -> str:
        """Строка подключения для Alembic, который работает синхронно."""
        return self._postgres_url("psycopg")


settings = Settings()  # type: ignore[call-arg]
