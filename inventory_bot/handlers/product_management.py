"""Обработчики для FSM-сценариев управления товарами."""

import logging
from typing import Any

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_bot.db.models import DEFAULT_LOW_STOCK_THRESHOLD
from inventory_bot.fsm.product_states import DeleteProduct, ProductForm
from inventory_bot.handlers.inventory_view import get_view, show_inventory
from inventory_bot.handlers.rendering import render_categories, render_product_details
from inventory_bot.services import category_service, product_service
from inventory_bot.services.category_service import NEW_CATEGORY, CategorySelection
from inventory_bot.services.product_service import ProductFields

router = Router()

# Ключ в данных FSM для незаконченной формы
FORM_KEY = "form"
# Ответ "оставить как есть" при редактировании
KEEP = "-"
NO_CATEGORY = "нет"

MODE_ADD = "add"
MODE_EDIT = "edit"


async def get_form(state: FSMContext) -> dict[str, Any]:
    data = await state.get_data()
    return dict(data.get(FORM_KEY) or {})


async def update_form(state: FSMContext, **values: Any) -> dict[str, Any]:
    form = await get_form(state)
    form.update(values)
    await state.update_data({FORM_KEY: form})
    return form


async def finish_flow(state: FSMContext) -> None:
    """Завершает сценарий, сохраняя фильтры и страницу списка."""
    await state.set_state(None)
    await state.update_data({FORM_KEY: None})


def _keep_hint(form: dict[str, Any], field: str) -> str:
    if form.get("mode") != MODE_EDIT:
        return ""
    current = form["current"].get(field)
    return f" (или '{KEEP}', чтобы оставить: {current if current not in (None, '') else 'пусто'})"


def _is_keep(form: dict[str, Any], text: str) -> bool:
    return form.get("mode") == MODE_EDIT and text == KEEP


# --- Универсальный отменщик FSM ---
@router.message(Command(commands=["cancel"]))
@router.message(F.text.casefold() == "отмена")
async def cancel_handler(message: Message, state: FSMContext) -> None:
    """
    Позволяет пользователю отменить любое действие FSM.
    """
    current_state = await state.get_state()
    if current_state is None:
        await message.answer("Нет активных действий для отмены.")
        return

    logging.info("Cancelling state %r", current_state)
    await finish_flow(state)
    await message.answer("Действие отменено.")


# --- Сценарий добавления товара ---
@router.message(Command(commands=["add"]))
async def handle_add_product_start(message: Message, state: FSMContext) -> None:
    """
    Начало сценария добавления товара.
    """
    await state.update_data({FORM_KEY: {"mode": MODE_ADD}})
    await state.set_state(ProductForm.waiting_for_name)
    await message.answer("Введите название нового товара:")


# --- Сценарий редактирования товара ---
@router.message(Command(commands=["edit"]))
async def handle_edit_product_start(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    """
    Начало редактирования: /edit <id>. Проходит по тем же шагам, что и
    добавление, но '-' оставляет текущее значение поля.
    """
    arg = (command.args or "").strip()
    if not arg.isdecimal():
        await message.answer("Использование: /edit <id товара>")
        return

    try:
        product = await product_service.get_product(session, int(arg))
    except Exception:
        logging.exception("Failed to load product %s", arg)
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
        return
    if product is None:
        await message.answer(f"Товар с ID {arg} не найден. Проверьте список командой /list.")
        return

    current = {
        "name": product.name,
        "description": product.description or "",
        "quantity": product.quantity,
        "low_stock_threshold": product.low_stock_threshold,
        "product_id": product.product_id,
        "category_id": product.category_id,
    }
    form = {"mode": MODE_EDIT, "id": product.id, "current": current}
    await state.update_data({FORM_KEY: form})
    await state.set_state(ProductForm.waiting_for_name)
    await message.answer(
        render_product_details(product)
        + "\n\nВведите новое название"
        + _keep_hint(form, "name")
        + ":"
    )


@router.message(ProductForm.waiting_for_name)
async def process_product_name(message: Message, state: FSMContext) -> None:
    """
    Обработка названия товара и запрос описания.
    """
    text = (message.text or "").strip()
    if not text:
        await message.answer("Название не может быть пустым. Попробуйте еще раз.")
        return

    form = await get_form(state)
    name = form["current"]["name"] if _is_keep(form, text) else text
    form = await update_form(state, name=name)
    await state.set_state(ProductForm.waiting_for_description)
    hint = _keep_hint(form, "description") or f" (или '{KEEP}', если без описания)"
    await message.answer(f"Введите описание{hint}:")


@router.message(ProductForm.waiting_for_description)
async def process_product_description(message: Message, state: FSMContext) -> None:
    text = (message.text or "").strip()
    form = await get_form(state)
    if _is_keep(form, text):
        description = form["current"]["description"]
    elif text == KEEP:
        description = ""
    else:
        description = text
    form = await update_form(state, description=description)
    await state.set_state(ProductForm.waiting_for_quantity)
    await message.answer(f"Введите количество (только цифры){_keep_hint(form, 'quantity')}:")


@router.message(ProductForm.waiting_for_quantity)
async def process_product_quantity(message: Message, state: FSMContext) -> None:
    """
    Обработка количества. При добавлении оно должно быть больше нуля,
    при редактировании допускается ноль.
    """
    text = (message.text or "").strip()
    form = await get_form(state)
    if _is_keep(form, text):
        quantity = form["current"]["quantity"]
    else:
        if not text.isdecimal():
            await message.answer("Пожалуйста, введите корректное число.")
            return
        quantity = int(text)
        if form.get("mode") == MODE_ADD and quantity <= 0:
            await message.answer("Количество должно быть больше нуля.")
            return

    form = await update_form(state, quantity=quantity)
    await state.set_state(ProductForm.waiting_for_threshold)
    hint = _keep_hint(form, "low_stock_threshold") or (
        f" (или '{KEEP}' для значения по умолчанию {DEFAULT_LOW_STOCK_THRESHOLD})"
    )
    await message.answer(f"Введите порог низкого остатка{hint}:")


@router.message(ProductForm.waiting_for_threshold)
async def process_product_threshold(
    message: Message, state: FSMContext, session: AsyncSession
) -> None:
    text = (message.text or "").strip()
    form = await get_form(state)
    if _is_keep(form, text):
        threshold = form["current"]["low_stock_threshold"]
    elif text == KEEP:
        threshold = DEFAULT_LOW_STOCK_THRESHOLD
    elif text.isdecimal():
        threshold = int(text)
    else:
        await message.answer("Пожалуйста, введите корректное число.")
        return

    form = await update_form(state, low_stock_threshold=threshold)
    await state.set_state(ProductForm.waiting_for_category)

    categories = await category_service.get_all_categories(session)
    lines = [
        render_categories(categories),
        "",
        f"Введите ID категории или '{NEW_CATEGORY}', чтобы создать новую.",
    ]
    if form.get("mode") == MODE_EDIT:
        lines.append(
            f"'{KEEP}' оставит текущую категорию, '{NO_CATEGORY}' уберет категорию."
        )
    await message.answer("\n".join(lines))


@router.message(ProductForm.waiting_for_category)
async def process_product_category(
    message: Message, state: FSMContext, session: AsyncSession
) -> None:
    text = (message.text or "").strip().lower()
    form = await get_form(state)

    if text == NEW_CATEGORY:
        await state.set_state(ProductForm.waiting_for_new_category_name)
        await message.answer("Введите название новой категории:")
        return

    if form.get("mode") == MODE_EDIT and text == KEEP:
        current = form["current"]["category_id"]
        selection = CategorySelection(category_id="" if current is None else str(current))
    elif form.get("mode") == MODE_EDIT and text == NO_CATEGORY:
        selection = CategorySelection()
    elif text.isdecimal():
        selection = CategorySelection(category_id=text)
    else:
        await message.answer(f"Введите ID категории из списка или '{NEW_CATEGORY}'.")
        return

    await save_product(message, state, session, form, selection)


@router.message(ProductForm.waiting_for_new_category_name)
async def process_new_category_name(
    message: Message, state: FSMContext, session: AsyncSession
) -> None:
    text = (message.text or "").strip()
    if not text:
        await message.answer("Название категории не может быть пустым.")
        return

    form = await get_form(state)
    selection = CategorySelection(category_id=NEW_CATEGORY, new_category_name=text)
    await save_product(message, state, session, form, selection)


async def save_product(
    message: Message,
    state: FSMContext,
    session: AsyncSession,
    form: dict[str, Any],
    selection: CategorySelection,
) -> None:
    """
    Последний шаг формы: вызывает операцию создания или обновления и после
    успеха заново загружает и показывает список.
    """
    fields = ProductFields(
        name=form["name"],
        description=form["description"],
        quantity=form["quantity"],
        low_stock_threshold=form["low_stock_threshold"],
        product_id=form.get("current", {}).get("product_id"),
    )
    try:
        if form["mode"] == MODE_EDIT:
            result = await product_service.update_product(
                session, form["id"], fields, selection
            )
        else:
            result = await product_service.create_product(session, fields, selection)
    except Exception:
        logging.exception("Error in save_product")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
        await finish_flow(state)
        return

    await finish_flow(state)
    await message.answer(result.message)
    if result.success:
        await show_inventory(message, session, await get_view(state))


# --- Сценарий удаления товара ---
@router.message(Command(commands=["delete"]))
async def handle_delete_product_start(
    message: Message, command: CommandObject, state: FSMContext, session: AsyncSession
) -> None:
    """
    Начало удаления: /delete <id>. Перед удалением запрашивается подтверждение.
    """
    arg = (command.args or "").strip()
    if not arg.isdecimal():
        await message.answer("Использование: /delete <id товара>")
        return

    try:
        product = await product_service.get_product(session, int(arg))
    except Exception:
        logging.exception("Failed to load product %s", arg)
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
        return
    if product is None:
        await message.answer(f"Товар с ID {arg} не найден. Проверьте список командой /list.")
        return

    await state.update_data({FORM_KEY: {"id": product.id, "name": product.name}})
    await state.set_state(DeleteProduct.waiting_for_confirmation)
    await message.answer(f"Удалить товар '{product.name}'? Ответьте 'да' или 'нет'.")


@router.message(DeleteProduct.waiting_for_confirmation)
async def process_delete_confirmation(
    message: Message, state: FSMContext, session: AsyncSession
) -> None:
    answer = (message.text or "").strip().lower()
    if answer not in ("да", "нет"):
        await message.answer("Ответьте 'да' или 'нет'.")
        return

    form = await get_form(state)
    await finish_flow(state)
    if answer == "нет":
        await message.answer("Удаление отменено.")
        return

    try:
        result = await product_service.delete_product(session, form["id"])
    except Exception:
        logging.exception("Error in process_delete_confirmation")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
        return

    if result.success:
        await message.answer(f"Товар '{form['name']}' удален.")
        await show_inventory(message, session, await get_view(state))
    else:
        await message.answer(result.message)
