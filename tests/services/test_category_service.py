"""Тесты выбора и создания категорий."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_bot.core.results import Err, ErrorKind, Ok
from inventory_bot.db.models import Category
from inventory_bot.services import category_service
from inventory_bot.services.category_service import CategorySelection

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def test_numeric_id_is_used_without_lookup() -> None:
    session = AsyncMock(spec=AsyncSession)

    result = await category_service.resolve_category(
        session, CategorySelection(category_id=" 42 "), required=True
    )

    assert result == Ok(42)
    session.execute.assert_not_called()


@pytest.mark.parametrize(
    ("required", "expected_success"), [(True, False), (False, True)]
)
async def test_empty_selection(required: bool, expected_success: bool) -> None:
    session = AsyncMock(spec=AsyncSession)

    result = await category_service.resolve_category(
        session, CategorySelection(), required=required
    )

    assert result.success is expected_success
    if isinstance(result, Ok):
        assert result.value is None
    else:
        assert result.error is ErrorKind.VALIDATION


async def test_get_or_create_reuses_existing_category(
    session: AsyncSession, hardware: Category
) -> None:
    hardware_id = hardware.id

    result = await category_service.get_or_create_category(session, "Hardware")

    assert isinstance(result, Ok)
    assert result.value.id == hardware_id
    assert len(await category_service.get_all_categories(session)) == 1


async def test_new_category_is_created_once(session: AsyncSession) -> None:
    selection = CategorySelection(category_id="new", new_category_name="  Tools ")

    first = await category_service.resolve_category(session, selection, required=True)
    second = await category_service.resolve_category(session, selection, required=False)

    assert isinstance(first, Ok)
    assert first == second
    categories = await category_service.get_all_categories(session)
    assert [c.name for c in categories] == ["Tools"]


async def test_unknown_selection_value_is_rejected() -> None:
    session = AsyncMock(spec=AsyncSession)

    result = await category_service.resolve_category(
        session, CategorySelection(category_id="misc"), required=False
    )

    assert isinstance(result, Err)
    assert result.error is ErrorKind.VALIDATION


@pytest.mark.parametrize("raw_id", ["²", "1²", "-3", "1.5"])
async def test_non_decimal_id_is_rejected(raw_id: str) -> None:
    """Символы-цифры, которые int() не принимает, дают ошибку валидации."""
    session = AsyncMock(spec=AsyncSession)

    result = await category_service.resolve_category(
        session, CategorySelection(category_id=raw_id), required=True
    )

    assert isinstance(result, Err)
    assert result.error is ErrorKind.VALIDATION
    session.execute.assert_not_called()
