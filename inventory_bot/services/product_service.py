"""Сервисный слой для управления товарами."""

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pydantic import BaseModel
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from inventory_bot.core.results import Err, ErrorKind, Ok, OperationResult
from inventory_bot.db.models import DEFAULT_LOW_STOCK_THRESHOLD, Category, Product
from inventory_bot.services.category_service import (
    CategorySelection,
    get_all_categories,
    resolve_category,
)

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
PRODUCT_ID_MAX_LENGTH = 50


class ProductFields(BaseModel):
    """
    Поля товара из формы добавления/редактирования.

    Ограничения не объявлены в схеме: их проверяет _validate_fields в
    фиксированном порядке, чтобы пользователь видел первое нарушение.
    """

    name: str
    description: str = ""
    quantity: int
    product_id: str | None = None
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD


@dataclass(frozen=True)
class InventorySnapshot:
    """Свежая копия данных склада для слоя представления."""

    products: Sequence[Product]
    categories: Sequence[Category]


def generate_product_id() -> str:
    """
    Генерирует внешний идентификатор товара.

    Returns:
        Строка вида PRD-1A2B3C4D.
    """
    return f"PRD-{uuid.uuid4().hex[:8].upper()}"


def _validate_fields(fields: ProductFields, *, min_quantity: int) -> str | None:
    """Возвращает текст первой найденной ошибки или None."""
    if not fields.name.strip():
        return "Название товара обязательно."
    if fields.quantity < min_quantity:
        if min_quantity > 0:
            return "Количество должно быть больше нуля."
        return "Количество не может быть отрицательным."
    if len(fields.name.strip()) > NAME_MAX_LENGTH:
        return f"Название не должно быть длиннее {NAME_MAX_LENGTH} символов."
    if len(fields.description) > DESCRIPTION_MAX_LENGTH:
        return f"Описание не должно быть длиннее {DESCRIPTION_MAX_LENGTH} символов."
    if fields.product_id and len(fields.product_id.strip()) > PRODUCT_ID_MAX_LENGTH:
        return f"ID товара не должен быть длиннее {PRODUCT_ID_MAX_LENGTH} символов."
    if fields.low_stock_threshold < 0:
        return "Порог низкого остатка не может быть отрицательным."
    return None


async def get_all_products(session: AsyncSession) -> Sequence[Product]:
    """
    Возвращает все товары вместе с категориями, новые первыми.

    Args:
        session: Сессия базы данных.

    Returns:
        Последовательность объектов Product.
    """
    statement = (
        select(Product)
        .options(selectinload(Product.category))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .execution_options(populate_existing=True)
    )
    result = await session.execute(statement)
    return result.scalars().all()


async def get_product(session: AsyncSession, product_id: int) -> Product | None:
    """
    Находит товар по ID вместе с категорией.

    Args:
        session: Сессия базы данных.
        product_id: ID товара.

    Returns:
        Объект Product или None, если товар не найден.
    """
    statement = (
        select(Product)
        .where(Product.id == product_id)
        .options(selectinload(Product.category))
        .execution_options(populate_existing=True)
    )
    result = await session.execute(statement)
    return result.scalar_one_or_none()


async def get_product_by_name(session: AsyncSession, name: str) -> Product | None:
    """
    Находит товар по точному (с учетом регистра) названию.

    Args:
        session: Сессия базы данных.
        name: Название товара для поиска.

    Returns:
        Объект Product или None, если товар не найден.
    """
    statement = select(Product).where(Product.name == name).limit(1)
    result = await session.execute(statement)
    return result.scalars().first()


async def load_inventory(session: AsyncSession) -> InventorySnapshot:
    """
    Перечитывает товары и категории целиком.

    Вызывается слоем представления после каждой успешной операции вместо
    точечного обновления закэшированных данных.

    Args:
        session: Сессия базы данных.

    Returns:
        Снимок склада.
    """
    products = await get_all_products(session)
    categories = await get_all_categories(session)
    return InventorySnapshot(products=products, categories=categories)


async def create_product(
    session: AsyncSession,
    fields: ProductFields,
    selection: CategorySelection,
    id_generator: Callable[[], str] = generate_product_id,
) -> OperationResult[Product]:
    """
    Создает новый товар.

    Порядок шагов: проверка полей, проверка дубликата названия, выбор или
    создание категории, запись товара. Категория и товар записываются
    отдельными транзакциями; если запись товара не удалась, созданная
    категория остается и может быть использована повторно.

    Args:
        session: Сессия базы данных.
        fields: Поля товара. Переданный product_id игнорируется, внешний
                ID генерируется заново.
        selection: Выбор категории (обязателен).
        id_generator: Генератор внешнего ID товара.

    Returns:
        Ok с созданным товаром (его product_id и есть новый ID) или Err.
    """
    error = _validate_fields(fields, min_quantity=1)
    if error:
        return Err(ErrorKind.VALIDATION, error)

    name = fields.name.strip()
    try:
        duplicate = await get_product_by_name(session, name)
    except SQLAlchemyError as e:
        logging.exception("Duplicate check failed for product %r", name)
        return Err(ErrorKind.STORAGE, f"Ошибка БД (проверка дубликата): {e}")
    if duplicate is not None:
        return Err(ErrorKind.CONFLICT, f"Товар с названием \"{name}\" уже существует.")

    category = await resolve_category(session, selection, required=True)
    if isinstance(category, Err):
        return category

    new_product_id = id_generator()
    db_product = Product(
        name=name,
        description=fields.description.strip() or None,
        quantity=fields.quantity,
        price=0,
        product_id=new_product_id,
        low_stock_threshold=fields.low_stock_threshold,
        category_id=category.value,
    )
    session.add(db_product)
    try:
        await session.commit()
        await session.refresh(db_product)
    except SQLAlchemyError as e:
        await session.rollback()
        logging.exception("Failed to insert product %r", name)
        return Err(ErrorKind.STORAGE, f"Ошибка БД: {e}")

    logging.info("Created product %s (%s)", db_product.id, new_product_id)
    return Ok(
        db_product,
        f"Товар \"{name}\" добавлен, ID {new_product_id}.",
    )


async def update_product(
    session: AsyncSession,
    product_id: int,
    fields: ProductFields,
    selection: CategorySelection,
) -> OperationResult[Product]:
    """
    Обновляет все поля товара одним запросом.

    В отличие от create_product, дубликат названия не проверяется, а пустой
    выбор категории означает "без категории".

    Args:
        session: Сессия базы данных.
        product_id: ID товара для обновления.
        fields: Новые значения полей.
        selection: Выбор категории.

    Returns:
        Ok с обновленным товаром (категория загружена) или Err.
    """
    category = await resolve_category(session, selection, required=False)
    if isinstance(category, Err):
        return category

    error = _validate_fields(fields, min_quantity=0)
    if error:
        return Err(ErrorKind.VALIDATION, error)

    values = {
        "name": fields.name.strip(),
        "description": fields.description.strip() or None,
        "quantity": fields.quantity,
        "product_id": (fields.product_id or "").strip() or None,
        "low_stock_threshold": fields.low_stock_threshold,
        "category_id": category.value,
    }
    statement = update(Product).where(Product.id == product_id).values(**values)
    try:
        await session.execute(statement)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logging.exception("Failed to update product %s", product_id)
        return Err(ErrorKind.STORAGE, f"Не удалось обновить товар: {e}")

    try:
        updated = await get_product(session, product_id)
    except SQLAlchemyError as e:
        logging.exception("Failed to re-read product %s", product_id)
        return Err(ErrorKind.STORAGE, f"Не удалось прочитать товар: {e}")
    if updated is None:
        logging.warning("Product %s not found after update", product_id)
        return Err(
            ErrorKind.CONSISTENCY,
            "Изменения отправлены, но обновленный товар не найден.",
        )

    logging.info("Updated product %s", product_id)
    return Ok(updated, f"Товар \"{updated.name}\" обновлен.")


async def delete_product(session: AsyncSession, product_id: int) -> OperationResult[None]:
    """
    Удаляет товар по ID.

    Args:
        session: Сессия базы данных.
        product_id: ID товара.

    Returns:
        Ok(None) или Err, если товар не найден или БД отклонила запрос.
    """
    statement = delete(Product).where(Product.id == product_id)
    try:
        result = await session.execute(statement)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logging.exception("Failed to delete product %s", product_id)
        return Err(ErrorKind.STORAGE, f"Не удалось удалить товар: {e}")

    if result.rowcount == 0:
        return Err(ErrorKind.CONSISTENCY, f"Товар с ID {product_id} не найден.")

    logging.info("Deleted product %s", product_id)
    return Ok(None, "Товар удален.")
