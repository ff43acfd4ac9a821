"""Фикстуры для тестов хендлеров: диспетчер, mock-бот, отправка сообщений."""

import datetime
from collections.abc import Awaitable, Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from aiogram import Dispatcher, F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import Chat, Message, MessageEntity, Update, User
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_bot.fsm.product_states import DeleteProduct, ProductForm
from inventory_bot.handlers import commands, inventory_view, product_management
from inventory_bot.inventory.debounce import Debouncer
from inventory_bot.middlewares.db_session import DbSessionMiddleware

# Константы для тестов
TEST_CHAT = Chat(id=123, type="private")
TEST_USER = User(id=123, is_bot=False, first_name="Test")

Send = Callable[[str], Awaitable[None]]


def build_test_router() -> Router:
    """
    Регистрирует хендлеры в новом роутере с теми же фильтрами, что и в
    приложении. Роутеры модулей можно подключить только к одному
    диспетчеру, а тестам нужен свежий диспетчер на каждый тест.
    """
    router = Router()
    message = router.message

    message.register(commands.handle_start, CommandStart())
    message.register(commands.handle_help, Command(commands=["help"]))
    message.register(commands.handle_list_categories, Command(commands=["categories"]))
    message.register(commands.handle_sign_out, Command(commands=["logout"]))

    message.register(inventory_view.handle_list_products, Command(commands=["list"]))
    message.register(inventory_view.handle_low_stock, Command(commands=["low"]))
    message.register(inventory_view.handle_search, Command(commands=["search"]))
    message.register(inventory_view.handle_stock_filter, Command(commands=["stock"]))
    message.register(inventory_view.handle_category_filter, Command(commands=["category"]))
    message.register(inventory_view.handle_date_filter, Command(commands=["added"]))
    message.register(inventory_view.handle_quantity_filter, Command(commands=["qty"]))
    message.register(inventory_view.handle_sort, Command(commands=["sort"]))
    message.register(inventory_view.handle_page_size, Command(commands=["pagesize"]))
    message.register(inventory_view.handle_page, Command(commands=["page"]))
    message.register(inventory_view.handle_page_step, Command(commands=["next", "prev"]))
    message.register(inventory_view.handle_clear_filters, Command(commands=["clear"]))

    pm = product_management
    message.register(pm.cancel_handler, Command(commands=["cancel"]))
    message.register(pm.cancel_handler, F.text.casefold() == "отмена")
    message.register(pm.handle_add_product_start, Command(commands=["add"]))
    message.register(pm.handle_edit_product_start, Command(commands=["edit"]))
    message.register(pm.handle_delete_product_start, Command(commands=["delete"]))
    message.register(pm.process_product_name, ProductForm.waiting_for_name)
    message.register(pm.process_product_description, ProductForm.waiting_for_description)
    message.register(pm.process_product_quantity, ProductForm.waiting_for_quantity)
    message.register(pm.process_product_threshold, ProductForm.waiting_for_threshold)
    message.register(pm.process_product_category, ProductForm.waiting_for_category)
    message.register(
        pm.process_new_category_name, ProductForm.waiting_for_new_category_name
    )
    message.register(
        pm.process_delete_confirmation, DeleteProduct.waiting_for_confirmation
    )
    return router


@pytest.fixture
def dp(session_factory: async_sessionmaker[AsyncSession]) -> Dispatcher:
    """
    Фикстура для создания чистого экземпляра Dispatcher для каждого теста.
    """
    dp = Dispatcher(storage=MemoryStorage())
    dp.update.middleware(DbSessionMiddleware(session_pool=session_factory))
    dp["search_debouncer"] = Debouncer(delay=0.01)
    dp.include_router(build_test_router())
    return dp


@pytest.fixture
def bot() -> AsyncMock:
    return AsyncMock()


@pytest.fixture(autouse=True)
def forward_answers(bot: AsyncMock) -> Generator[None, None, None]:
    """Перенаправляет Message.answer в mock-бот на все время теста."""

    async def mock_answer(self: Message, text: str, **kwargs: Any) -> Message:
        return await bot.send_message(chat_id=self.chat.id, text=text, **kwargs)  # type: ignore[no-any-return]

    with patch.object(Message, "answer", mock_answer):
        yield


@pytest.fixture
def send(dp: Dispatcher, bot: AsyncMock) -> Send:
    """Хелпер для симуляции входящего сообщения."""

    async def process_update(text: str) -> None:
        entities = []
        if text.startswith("/"):
            command_length = len(text.split()[0])
            entities.append(
                MessageEntity(type="bot_command", offset=0, length=command_length)
            )

        message = Message(
            message_id=1,
            chat=TEST_CHAT,
            from_user=TEST_USER,
            text=text,
            entities=entities,
            date=datetime.datetime.now(datetime.UTC),
        )
        await dp.feed_update(bot, Update(update_id=1, message=message))

    return process_update


def sent_texts(bot: AsyncMock) -> list[str]:
    return [call.kwargs["text"] for call in bot.send_message.call_args_list]


@pytest.fixture
def replies(bot: AsyncMock) -> Callable[[], list[str]]:
    """Возвращает тексты всех ответов бота и очищает историю вызовов."""

    def collect() -> list[str]:
        texts = sent_texts(bot)
        bot.reset_mock()
        return texts

    return collect
