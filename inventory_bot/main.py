"""Главный файл приложения. Точка входа."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.redis import RedisStorage
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from inventory_bot.core.config import settings
from inventory_bot.db.session import AsyncSessionFactory
from inventory_bot.handlers import (
    commands,
    inventory_view,
    product_management,
)
from inventory_bot.inventory.debounce import Debouncer
from inventory_bot.middlewares.db_session import DbSessionMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_dispatcher(storage: RedisStorage) -> Dispatcher:
    """
    Собирает диспетчер: middleware сессии БД, роутеры и общие зависимости.

    Порядок роутеров важен: команды списка срабатывают и во время
    незаконченной формы, а шаги формы ловят только обычный текст.
    """
    dp = Dispatcher(storage=storage)
    dp.update.middleware(DbSessionMiddleware(session_pool=AsyncSessionFactory))
    # Передается в хендлеры как аргумент search_debouncer
    dp["search_debouncer"] = Debouncer(delay=settings.SEARCH_DEBOUNCE_SECONDS)
    dp.include_router(commands.router)
    dp.include_router(inventory_view.router)
    dp.include_router(product_management.router)
    return dp


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Контекстный менеджер для управления жизненным циклом приложения.
    """
    logging.info("Initializing bot, Redis connection and FSM storage")
    bot = Bot(token=settings.BOT_TOKEN)
    redis_client = Redis(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    dp = create_dispatcher(RedisStorage(redis=redis_client))

    # Сохраняем экземпляры в app.state для доступа в хендлерах
    app.state.bot = bot
    app.state.dp = dp
    app.state.redis = redis_client

    await bot.delete_webhook(drop_pending_updates=True)
    logging.info("Setting webhook to %s", settings.webhook_url)
    await bot.set_webhook(
        url=settings.webhook_url, secret_token=settings.WEBHOOK_SECRET
    )
    logging.info("Startup complete")

    yield

    logging.info("Shutting down")
    await app.state.bot.delete_webhook()
    await app.state.bot.session.close()
    await app.state.redis.aclose()


# --- Приложение FastAPI ---
app = FastAPI(lifespan=lifespan)


@app.post("/telegram/webhook/{token}")
async def webhook_handler(request: Request, token: str) -> Response:
    """
    Обработчик вебхуков от Telegram.
    """
    if token != settings.BOT_TOKEN:
        return JSONResponse(content={"error": "Invalid token"}, status_code=403)

    telegram_secret_token = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
    if telegram_secret_token != settings.WEBHOOK_SECRET:
        return JSONResponse(content={"error": "Invalid secret token"}, status_code=403)

    try:
        update = await request.json()
        dp: Dispatcher = request.app.state.dp
        bot: Bot = request.app.state.bot
        await dp.feed_webhook_update(bot=bot, update=update)
    except Exception:
        logging.exception("Critical error in webhook handler")
        return Response(status_code=500)

    return Response(status_code=200)


# --- Точка входа для локального запуска ---
if __name__ == "__main__":
    uvicorn.run(
        "inventory_bot.main:app",
        host="0.0.0.0",  # noqa: B104
        port=8000,
        reload=True,
    )
