"""Pacing of sequential provider calls under a per-minute quota."""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import TypeVar

from marketdesk.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]
MonotonicFunc = Callable[[], float]


class RateLimitPacer:
    """Yields work items one at a time, at least ``min_interval`` seconds apart.

    The interval is measured between the moments consecutive items are handed
    out, so time spent processing an item counts towards the wait. The wait is
    applied between every pair of items whatever happened to the previous one,
    and never after the last item.

    Usage:
        pacer = RateLimitPacer(12.0)
        async for pair in pacer.pace(CURRENCY_PAIRS):
            await fetch(pair)
    """

    def __init__(
        self,
        min_interval: float,
        *,
        sleep: SleepFunc | None = None,
        monotonic: MonotonicFunc | None = None,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        self.min_interval = min_interval
        self._sleep = sleep or asyncio.sleep
        self._monotonic = monotonic or time.monotonic

    async def pace(self, items: Iterable[T]) -> AsyncIterator[T]:
        last_started: float | None = None
        for item in items:
            if last_started is not None:
                remaining = self.min_interval - (self._monotonic() - last_started)
                if remaining > 0:
                    logger.debug("pacer_waiting", seconds=round(remaining, 3))
                    await self._sleep(remaining)
            last_started = self._monotonic()
            yield item
