"""Состояния (FSM) для управления товарами."""

from aiogram.fsm.state import State, StatesGroup


class ProductForm(StatesGroup):
    """
    Форма товара, общая для добавления (/add) и редактирования (/edit).

    Режим формы и уже введенные поля хранятся в данных FSM под ключом "form".
    """

    waiting_for_name = State()
    waiting_for_description = State()
    waiting_for_quantity = State()
    waiting_for_threshold = State()
    waiting_for_category = State()
    waiting_for_new_category_name = State()


class DeleteProduct(StatesGroup):
    """Подтверждение удаления товара."""

    waiting_for_confirmation = State()
