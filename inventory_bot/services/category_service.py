"""Сервисный слой для категорий товаров."""

import logging
from collections.abc import Sequence

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from inventory_bot.core.results import Err, ErrorKind, Ok, OperationResult
from inventory_bot.db.models import Category

NEW_CATEGORY = "new"


class CategorySelection(BaseModel):
    """
    Выбор категории из формы товара.

    Атрибуты:
        category_id: ID существующей категории строкой, "new" или пустая строка.
        new_category_name: Название новой категории, если category_id == "new".
    """

    category_id: str = ""
    new_category_name: str = ""


async def get_all_categories(session: AsyncSession) -> Sequence[Category]:
    """
    Возвращает все категории, отсортированные по названию.

    Args:
        session: Сессия базы данных.

    Returns:
        Последовательность объектов Category.
    """
    statement = select(Category).order_by(Category.name)
    result = await session.execute(statement)
    return result.scalars().all()


async def get_category_by_name(session: AsyncSession, name: str) -> Category | None:
    """
    Находит категорию по точному названию.

    Args:
        session: Сессия базы данных.
        name: Название категории.

    Returns:
        Объект Category или None, если категория не найдена.
    """
    statement = select(Category).where(Category.name == name)
    result = await session.execute(statement)
    return result.scalar_one_or_none()


async def get_or_create_category(
    session: AsyncSession, name: str
) -> OperationResult[Category]:
    """
    Создает категорию или возвращает уже существующую с тем же названием.

    Сначала выполняется INSERT. Если его отклоняет ограничение уникальности
    (категорию успела создать другая сессия), транзакция откатывается и
    существующая строка перечитывается по названию.

    Args:
        session: Сессия базы данных.
        name: Название категории, уже без пробелов по краям.

    Returns:
        Ok с категорией или Err(STORAGE), если БД недоступна.
    """
    category = Category(name=name)
    session.add(category)
    try:
        await session.commit()
        await session.refresh(category)
        logging.info("Created category %r (id=%s)", name, category.id)
        return Ok(category)
    except IntegrityError:
        await session.rollback()
        logging.info("Category %r already exists, reusing it", name)
    except SQLAlchemyError as e:
        await session.rollback()
        logging.exception("Failed to create category %r", name)
        return Err(ErrorKind.STORAGE, f"Ошибка БД (категория): {e}")

    try:
        existing = await get_category_by_name(session, name)
    except SQLAlchemyError as e:
        logging.exception("Failed to re-read category %r", name)
        return Err(ErrorKind.STORAGE, f"Ошибка БД (категория): {e}")
    if existing is None:
        # Ограничение сработало, но строки нет: ее удалили между запросами.
        return Err(
            ErrorKind.CONSISTENCY,
            f"Не удалось найти категорию \"{name}\" после конфликта при создании.",
        )
    return Ok(existing)


async def resolve_category(
    session: AsyncSession, selection: CategorySelection, *, required: bool
) -> OperationResult[int | None]:
    """
    Превращает выбор категории из формы в category_id для записи товара.

    Args:
        session: Сессия базы данных.
        selection: Выбор пользователя.
        required: True для создания товара (категория обязательна),
                  False для редактирования (допускается "без категории").

    Returns:
        Ok с ID категории (или None) либо Err с описанием проблемы.
    """
    raw_id = selection.category_id.strip()

    if raw_id == NEW_CATEGORY:
        name = selection.new_category_name.strip()
        if not name:
            return Err(ErrorKind.VALIDATION, "Укажите название новой категории.")
        created = await get_or_create_category(session, name)
        if isinstance(created, Err):
            return created
        return Ok(created.value.id)

    if not raw_id:
        if required:
            return Err(ErrorKind.VALIDATION, "Категория обязательна.")
        return Ok(None)

    # Существование категории не проверяем: целостность обеспечит внешний ключ.
    if not raw_id.isdecimal():
        return Err(ErrorKind.VALIDATION, f"Некорректный ID категории: {raw_id}.")
    return Ok(int(raw_id))
