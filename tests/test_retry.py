"""Tests for app/core/retry.py."""

from unittest.mock import AsyncMock

import pytest

from app.core.errors import AdapterTerminalError, AdapterTransientError
from app.core.retry import retry_transient


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


async def test_returns_first_success_without_sleeping():
    sleep = RecordingSleep()
    func = AsyncMock(return_value="ok")

    assert await retry_transient(func, attempts=3, delay=1.0, sleep=sleep) == "ok"
    assert func.await_count == 1
    assert sleep.delays == []


async def test_linear_backoff_between_attempts():
    sleep = RecordingSleep()
    func = AsyncMock(side_effect=[AdapterTransientError("busy"), AdapterTransientError("busy"), "ok"])

    assert await retry_transient(func, attempts=3, delay=1.5, sleep=sleep) == "ok"
    assert func.await_count == 3
    assert sleep.delays == [1.5, 3.0]


async def test_exhaustion_reraises_last_transient_error():
    sleep = RecordingSleep()
    func = AsyncMock(side_effect=[AdapterTransientError("first"), AdapterTransientError("last")])

    with pytest.raises(AdapterTransientError) as exc:
        await retry_transient(func, attempts=2, delay=1.0, sleep=sleep)

    assert exc.value.message == "last"
    assert sleep.delays == [1.0]


async def test_terminal_errors_are_not_retried():
    sleep = RecordingSleep()
    func = AsyncMock(side_effect=AdapterTerminalError("bad request"))

    with pytest.raises(AdapterTerminalError):
        await retry_transient(func, attempts=5, delay=1.0, sleep=sleep)

    assert func.await_count == 1
    assert sleep.delays == []


async def test_attempts_below_one_still_calls_once():
    func = AsyncMock(return_value=42)
    assert await retry_transient(func, attempts=0, delay=1.0, sleep=RecordingSleep()) == 42
    assert func.await_count == 1
