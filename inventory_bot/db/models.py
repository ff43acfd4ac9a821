"""Модели базы данных проекта."""

import datetime

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlalchemy import inspect as sa_inspect
from sqlmodel import Field, Relationship, SQLModel

DEFAULT_LOW_STOCK_THRESHOLD = 10


def utcnow() -> datetime.datetime:
    """Текущее время в UTC без tzinfo, в таком виде оно хранится в БД."""
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


class Category(SQLModel, table=True):
    """Категория товаров. Название уникально на уровне БД."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=100)

    products: list["Product"] = Relationship(back_populates="category")


class Product(SQLModel, table=True):
    """Модель товара на складе."""

    id: int | None = Field(default=None, primary_key=True)
    # Уникальность названия проверяется в сервисном слое, а не ограничением БД
    name: str = Field(index=True, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    quantity: int = Field(default=0)
    product_id: str | None = Field(default=None, max_length=50)
    price: float = Field(default=0)
    low_stock_threshold: int = Field(default=DEFAULT_LOW_STOCK_THRESHOLD)
    category_id: int | None = Field(default=None, foreign_key="category.id")
    # Время хранится в UTC без tzinfo, как и "сейчас" в фильтре по дате
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)

    category: Category | None = Relationship(back_populates="products")

    @property
    def is_low_stock(self) -> bool:
        return self.quantity < self.low_stock_threshold

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity == 0

    @property
    def category_name(self) -> str | None:
        # Незагруженная связь не подгружается: ленивый запрос в асинхронной
        # сессии невозможен.
        if "category" in sa_inspect(self).unloaded:
            return None
        return self.category.name if self.category else None
