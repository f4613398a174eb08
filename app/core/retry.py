"""
Bounded retry with linear back-off.

The sleep function is injected so tests can record delays instead of waiting.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from app.core.errors import AdapterTransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


async def retry_transient(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    delay: float,
    sleep: SleepFunc = asyncio.sleep,
    label: str = "call",
) -> T:
    """
    Run `func` up to `attempts` times while it raises AdapterTransientError.
    Waits `attempt * delay` seconds between tries. Other exceptions propagate
    untouched; the last transient error is re-raised on exhaustion.
    """
    attempts = max(1, attempts)
    last_error: AdapterTransientError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except AdapterTransientError as e:
            last_error = e
            logger.warning(f"[RETRY] {label} attempt {attempt}/{attempts} failed: {e.message}")
            if attempt < attempts:
                await sleep(attempt * delay)

    raise last_error
