"""Тесты для просмотра списка товаров: баннер, фильтры, страницы, поиск."""

import asyncio
from collections.abc import Awaitable, Callable

import pytest
from aiogram import Dispatcher
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_bot.db.models import Category, Product
from inventory_bot.inventory.debounce import Debouncer

pytestmark = pytest.mark.asyncio(loop_scope="session")

Send = Callable[[str], Awaitable[None]]
Replies = Callable[[], list[str]]


async def add_products(session: AsyncSession, *products: Product) -> None:
    session.add_all(products)
    await session.commit()


async def test_start_shows_help(send: Send, replies: Replies) -> None:
    await send("/start")

    (reply,) = replies()
    assert reply.startswith("Привет!")
    assert "/list - список товаров" in reply


async def test_list_of_empty_store(send: Send, replies: Replies) -> None:
    await send("/list")

    assert replies() == ["Склад пуст. Добавьте первый товар командой /add."]


async def test_list_shows_low_stock_banner(
    send: Send, replies: Replies, session: AsyncSession, widget: Product, hardware: Category
) -> None:
    await add_products(
        session, Product(name="Bolt", quantity=5, low_stock_threshold=10, category_id=hardware.id)
    )

    await send("/list")

    (reply,) = replies()
    banner, summary, page = reply.split("\n\n")
    assert banner.startswith("⚠️ Низкий остаток: 1 поз.")
    assert "- Bolt (остаток: 5 / порог: 10), изменить: /edit" in banner
    assert "Widget" not in banner
    assert summary == "Сортировка по дате добавления ↓"
    assert page.startswith("Страница 1 из 1 (всего товаров: 2):")


async def test_low_command(
    send: Send, replies: Replies, session: AsyncSession, widget: Product
) -> None:
    await send("/low")
    assert replies() == ["Все товары выше порога низкого остатка."]

    await add_products(session, Product(name="Empty", quantity=0))
    await send("/low")
    (reply,) = replies()
    assert "Empty (остаток: 0 / порог: 10)" in reply


async def test_search_applies_only_last_query(
    dp: Dispatcher, send: Send, replies: Replies, session: AsyncSession, widget: Product
) -> None:
    """Из двух быстрых запросов применяется только последний."""
    dp["search_debouncer"] = Debouncer(delay=0.2)
    await add_products(session, Product(name="Nut", quantity=50))

    await asyncio.gather(send("/search wid"), send("/search nut"))

    (reply,) = replies()
    assert 'поиск: "nut"' in reply
    assert "Nut: 50 шт." in reply
    assert "Widget" not in reply


async def test_filter_change_resets_page(
    send: Send, replies: Replies, session: AsyncSession
) -> None:
    await add_products(session, *(Product(name=f"Item {i:02d}", quantity=50) for i in range(12)))

    await send("/prev")
    assert replies() == ["Это первая страница."]

    await send("/next")
    (reply,) = replies()
    assert "Страница 2 из 2 (всего товаров: 12):" in reply

    await send("/next")
    assert replies() == ["Это последняя страница."]

    await send("/stock in")
    (reply,) = replies()
    assert "фильтры: остаток: в наличии" in reply
    assert "Страница 1 из 2" in reply


async def test_sort_toggles_direction(
    send: Send, replies: Replies, widget: Product
) -> None:
    await send("/sort name")
    assert "Сортировка по названию ↑" in replies()[0]

    await send("/sort name")
    assert "Сортировка по названию ↓" in replies()[0]

    await send("/sort weight")
    assert replies() == ["Использование: /sort <name|quantity|created_at>"]


async def test_quantity_filter_and_clear(
    send: Send, replies: Replies, widget: Product
) -> None:
    await send("/qty 30 -")
    (reply,) = replies()
    assert "количество: 30-..." in reply
    assert "Ничего не найдено." in reply

    await send("/clear")
    (reply,) = replies()
    assert "фильтры" not in reply
    assert "1. Widget: 20 шт. [Hardware, PRD-WIDGET01]" in reply


async def test_invalid_page_size(send: Send, replies: Replies) -> None:
    await send("/pagesize 7")

    assert replies() == ["Использование: /pagesize <10|25|50>"]


async def test_logout_clears_view(
    send: Send, replies: Replies, widget: Product
) -> None:
    await send("/stock out")
    replies()

    await send("/logout")
    assert replies() == ["Вы вышли. Чтобы начать заново, отправьте /start."]

    await send("/list")
    (reply,) = replies()
    assert "фильтры" not in reply
    assert "Widget" in reply


async def test_categories_command(
    send: Send, replies: Replies, hardware: Category
) -> None:
    await send("/categories")

    assert replies() == [f"Категории:\n{hardware.id}. Hardware"]


@pytest.mark.parametrize("text", ["/page ²", "/page 0"])
async def test_page_rejects_non_decimal_number(
    send: Send, replies: Replies, text: str
) -> None:
    await send(text)

    assert replies() == ["Использование: /page <номер страницы>"]
