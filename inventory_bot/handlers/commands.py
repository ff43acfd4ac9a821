"""Обработчики базовых команд бота."""

import logging

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_bot.handlers.rendering import render_categories
from inventory_bot.services import category_service

# Создаем "роутер" для наших хендлеров.
router = Router()

HELP_TEXT = "\n".join(
    [
        "Управление складом:",
        "/list - список товаров",
        "/add - добавить товар",
        "/edit <id> - изменить товар",
        "/delete <id> - удалить товар",
        "/low - товары с низким остатком",
        "/categories - категории",
        "",
        "Фильтры и сортировка:",
        "/search <текст> - поиск по названию, описанию и ID",
        "/stock <all|in|low|out> - фильтр по остатку",
        "/category <id|all> - фильтр по категории",
        "/added <all|7|30> - добавленные за N дней",
        "/qty <min> <max> - диапазон количества (- без границы)",
        "/sort <name|quantity|created_at> - сортировка",
        "/pagesize <10|25|50>, /page <n>, /next, /prev",
        "/clear - сбросить фильтры",
        "",
        "/cancel - отменить действие, /logout - выйти",
    ]
)


@router.message(CommandStart())
async def handle_start(message: Message) -> None:
    """
    Обработчик команды /start.
    """
    await message.answer("Привет! Я помогу вести учет товаров на складе.\n\n" + HELP_TEXT)


@router.message(Command(commands=["help"]))
async def handle_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@router.message(Command(commands=["categories"]))
async def handle_list_categories(message: Message, session: AsyncSession) -> None:
    """
    Обработчик команды /categories.

    Args:
        message: Объект сообщения от пользователя.
        session: Сессия базы данных (передается через middleware).
    """
    try:
        categories = await category_service.get_all_categories(session)
        await message.answer(render_categories(categories))
    except Exception:
        logging.exception("Произошла ошибка в хендлере handle_list_categories")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")


@router.message(Command(commands=["logout"]))
async def handle_sign_out(message: Message, state: FSMContext) -> None:
    """
    Выход: удаляет все данные пользователя в хранилище FSM.

    Сбрасываются и незаконченные формы, и сохраненные фильтры списка.
    """
    await state.clear()
    logging.info("User %s signed out", message.from_user.id if message.from_user else None)
    await message.answer("Вы вышли. Чтобы начать заново, отправьте /start.")
