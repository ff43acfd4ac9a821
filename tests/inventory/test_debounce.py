"""Тесты таймера отложенного поиска."""

import asyncio

import pytest

from inventory_bot.inventory.debounce import Debouncer

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def test_settles_after_quiet_period() -> None:
    debouncer = Debouncer(delay=0.01)

    assert await debouncer.settle("chat") is True
    assert not debouncer.pending("chat")


async def test_newer_call_supersedes_pending_one() -> None:
    debouncer = Debouncer(delay=0.05)

    first = debouncer.schedule("chat")
    await asyncio.sleep(0.01)
    second = debouncer.schedule("chat")

    assert await first is False
    assert await second is True


async def test_keys_are_independent() -> None:
    debouncer = Debouncer(delay=0.01)

    results = await asyncio.gather(debouncer.settle(1), debouncer.settle(2))

    assert results == [True, True]


async def test_cancel() -> None:
    debouncer = Debouncer(delay=10)

    future = debouncer.schedule("chat")

    assert debouncer.pending("chat")
    assert debouncer.cancel("chat") is True
    assert await future is False
    assert debouncer.cancel("chat") is False
