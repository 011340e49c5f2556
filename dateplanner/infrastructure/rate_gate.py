"""Process-wide single-flight throttle in front of the generation provider."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

_logger = logging.getLogger("date-planner.rate-gate")

_EPOCH = 0.0


class RateGate:
    """Minimum-interval gate shared by every generation kind.

    ``last_call_at`` starts at the epoch and is stamped on every grant. It is
    never reset. All reads and writes of it happen without an ``await`` in
    between, so callers on one event loop cannot interleave inside an update.
    """

    def __init__(
        self,
        min_interval: float = 2.0,
        safety_margin: float = 0.1,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._min_interval = max(0.0, float(min_interval))
        self._safety_margin = max(0.0, float(safety_margin))
        self._clock = clock
        self._sleep = sleep
        self._last_call_at = _EPOCH
        self._granted = 0
        self._rejected = 0

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @property
    def last_call_at(self) -> float:
        return self._last_call_at

    def remaining(self) -> float:
        """Seconds until the next call may be granted (0 when free)."""
        return max(0.0, self._min_interval - (self._clock() - self._last_call_at))

    def try_acquire(self) -> bool:
        """Grant immediately or refuse without touching state. Never raises."""
        now = self._clock()
        if now - self._last_call_at < self._min_interval:
            self._rejected += 1
            return False
        self._last_call_at = now
        self._granted += 1
        return True

    async def await_acquire(self) -> None:
        """Suspend until the interval has elapsed, then take the slot.

        The slot is stamped before suspending so that a second caller arriving
        during the wait queues behind this one instead of computing the same
        wake-up time.
        """
        now = self._clock()
        wait = self._min_interval - (now - self._last_call_at)
        if wait <= 0:
            self._last_call_at = now
            self._granted += 1
            return

        wait += self._safety_margin
        self._last_call_at = now + wait
        self._granted += 1
        _logger.debug("rate gate wait %.2fs", wait)
        await self._sleep(wait)

    @property
    def stats(self) -> dict[str, float]:
        return {
            "min_interval_seconds": self._min_interval,
            "granted": self._granted,
            "rejected": self._rejected,
            "remaining_seconds": round(self.remaining(), 3),
        }


__all__ = ["RateGate"]
