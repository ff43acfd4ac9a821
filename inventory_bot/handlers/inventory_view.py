"""Обработчики просмотра списка товаров: фильтры, сортировка, страницы."""

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_bot.handlers.rendering import render_inventory, render_low_stock_alert
from inventory_bot.inventory.debounce import Debouncer
from inventory_bot.inventory.pipeline import (
    PAGE_SIZES,
    DateAdded,
    SortKey,
    StockStatus,
    process_products,
)
from inventory_bot.inventory.view_state import InventoryViewState
from inventory_bot.services import product_service

router = Router()

# Ключ в данных FSM, под которым хранится состояние списка
VIEW_KEY = "view"

STOCK_ALIASES = {
    "all": StockStatus.ALL,
    "in": StockStatus.IN_STOCK,
    "low": StockStatus.LOW_STOCK,
    "out": StockStatus.OUT_OF_STOCK,
}

DATE_ALIASES = {
    "all": DateAdded.ALL,
    "7": DateAdded.LAST_7_DAYS,
    "30": DateAdded.LAST_30_DAYS,
}


async def get_view(state: FSMContext) -> InventoryViewState:
    data = await state.get_data()
    return InventoryViewState.from_storage(data.get(VIEW_KEY))


async def save_view(state: FSMContext, view: InventoryViewState) -> None:
    await state.update_data({VIEW_KEY: view.to_storage()})


async def show_inventory(
    message: Message, session: AsyncSession, view: InventoryViewState
) -> None:
    """
    Перечитывает склад из БД и отправляет текущую страницу списка.

    Args:
        message: Сообщение, на которое отвечаем.
        session: Сессия базы данных.
        view: Состояние просмотра.
    """
    try:
        snapshot = await product_service.load_inventory(session)
    except Exception:
        logging.exception("Failed to load inventory")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
        return
    await message.answer(render_inventory(snapshot, view))


async def apply_view(
    message: Message,
    state: FSMContext,
    session: AsyncSession,
    view: InventoryViewState,
) -> None:
    await save_view(state, view)
    await show_inventory(message, session, view)


@router.message(Command(commands=["list"]))
async def handle_list_products(
    message: Message, state: FSMContext, session: AsyncSession
) -> None:
    """
    Обработчик команды /list.
    Показывает баннер низкого остатка и текущую страницу списка.
    """
    await show_inventory(message, session, await get_view(state))


@router.message(Command(commands=["low"]))
async def handle_low_stock(message: Message, session: AsyncSession) -> None:
    try:
        products = await product_service.get_all_products(session)
    except Exception:
        logging.exception("Произошла ошибка в хендлере handle_low_stock")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
        return
    alert = render_low_stock_alert(products)
    await message.answer(alert or "Все товары выше порога низкого остатка.")


@router.message(Command(commands=["search"]))
async def handle_search(
    message: Message,
    command: CommandObject,
    state: FSMContext,
    session: AsyncSession,
    search_debouncer: Debouncer,
) -> None:
    """
    Поиск с задержкой: применяется только последний запрос, присланный
    после паузы во вводе. Более ранние запросы молча отбрасываются.
    """
    term = (command.args or "").strip()
    # Сессия из middleware открыта на все время ожидания, но соединение с БД
    # берется только при первом запросе, то есть после settle.
    if not await search_debouncer.settle(message.chat.id):
        logging.debug("Search %r superseded in chat %s", term, message.chat.id)
        return
    view = (await get_view(state)).with_search(term)
    await apply_view(message, state, session, view)


@router.message(Command(commands=["stock"]))
async def handle_stock_filter(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    status = STOCK_ALIASES.get((command.args or "").strip().lower())
    if status is None:
        await message.answer("Использование: /stock <all|in|low|out>")
        return
    view = (await get_view(state)).with_filters(stock_status=status)
    await apply_view(message, state, session, view)


@router.message(Command(commands=["category"]))
async def handle_category_filter(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    arg = (command.args or "").strip().lower()
    if arg == "all":
        category_id = None
    elif arg.isdecimal():
        category_id = int(arg)
    else:
        await message.answer("Использование: /category <id|all>. Список: /categories")
        return
    view = (await get_view(state)).with_filters(category_id=category_id)
    await apply_view(message, state, session, view)


@router.message(Command(commands=["added"]))
async def handle_date_filter(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    date_added = DATE_ALIASES.get((command.args or "").strip().lower())
    if date_added is None:
        await message.answer("Использование: /added <all|7|30>")
        return
    view = (await get_view(state)).with_filters(date_added=date_added)
    await apply_view(message, state, session, view)


@router.message(Command(commands=["qty"]))
async def handle_quantity_filter(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    """
    Диапазон количества: /qty 5 20, /qty 5 -, /qty - 20.

    Нечисловая граница (в том числе "-") означает отсутствие ограничения.
    """
    args = (command.args or "").split()
    if len(args) != 2:
        await message.answer("Использование: /qty <min> <max>, '-' означает без границы")
        return
    low, high = ("" if a == "-" else a for a in args)
    view = (await get_view(state)).with_filters(min_quantity=low, max_quantity=high)
    await apply_view(message, state, session, view)


@router.message(Command(commands=["sort"]))
async def handle_sort(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    try:
        key = SortKey((command.args or "").strip().lower())
    except ValueError:
        await message.answer("Использование: /sort <name|quantity|created_at>")
        return
    view = (await get_view(state)).toggle_sort(key)
    await apply_view(message, state, session, view)


@router.message(Command(commands=["pagesize"]))
async def handle_page_size(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    arg = (command.args or "").strip()
    if not arg.isdecimal() or int(arg) not in PAGE_SIZES:
        sizes = "|".join(str(size) for size in PAGE_SIZES)
        await message.answer(f"Использование: /pagesize <{sizes}>")
        return
    view = (await get_view(state)).with_page_size(int(arg))
    await apply_view(message, state, session, view)


@router.message(Command(commands=["page"]))
async def handle_page(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    arg = (command.args or "").strip()
    if not arg.isdecimal() or int(arg) < 1:
        await message.answer("Использование: /page <номер страницы>")
        return
    view = (await get_view(state)).go_to_page(int(arg))
    await apply_view(message, state, session, view)


@router.message(Command(commands=["next", "prev"]))
async def handle_page_step(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    view = await get_view(state)
    if command.command == "prev":
        if view.page <= 1:
            await message.answer("Это первая страница.")
            return
        await apply_view(message, state, session, view.go_to_page(view.page - 1))
        return

    try:
        products = await product_service.get_all_products(session)
    except Exception:
        logging.exception("Произошла ошибка в хендлере handle_page_step")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
        return
    page = process_products(
        products, view.filters, view.sort, page=view.page, page_size=view.page_size
    )
    if view.page >= page.total_pages:
        await message.answer("Это последняя страница.")
        return
    await apply_view(message, state, session, view.go_to_page(view.page + 1))


@router.message(Command(commands=["clear"]))
async def handle_clear_filters(
    message: Message, state: FSMContext, session: AsyncSession
) -> None:
    view = (await get_view(state)).clear_filters()
    await apply_view(message, state, session, view)
