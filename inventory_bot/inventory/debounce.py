"""Отложенное применение ввода (debounce) с явной отменой таймера."""

import asyncio
from collections.abc import Hashable


class Debouncer:
    """
    Таймер "отменить и запустить заново", по одному на ключ (например, чат).

    schedule() отменяет ранее запланированный таймер того же ключа и
    запускает новый. Future, выданный отмененному вызову, получает False,
    а вызов, дождавшийся тишины в течение delay секунд, получает True.
    """

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._timers: dict[Hashable, tuple[asyncio.TimerHandle, asyncio.Future[bool]]] = {}

    def schedule(self, key: Hashable) -> asyncio.Future[bool]:
        self.cancel(key)
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bool] = loop.create_future()
        handle = loop.call_later(self.delay, self._fire, key, future)
        self._timers[key] = (handle, future)
        return future

    def cancel(self, key: Hashable) -> bool:
        """Отменяет ожидающий таймер. Возвращает True, если он был."""
        entry = self._timers.pop(key, None)
        if entry is None:
            return False
        handle, future = entry
        handle.cancel()
        if not future.done():
            future.set_result(False)
        return True

    def pending(self, key: Hashable) -> bool:
        return key in self._timers

    async def settle(self, key: Hashable) -> bool:
        """Ждет окончания ввода. False означает, что вызов вытеснен более новым."""
        return await self.schedule(key)

    def _fire(self, key: Hashable, future: asyncio.Future[bool]) -> None:
        entry = self._timers.get(key)
        if entry is not None and entry[1] is future:
            del self._timers[key]
        if not future.done():
            future.set_result(True)
