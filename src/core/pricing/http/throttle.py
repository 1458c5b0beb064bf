"""Minimum spacing between consecutive requests to one provider."""
import asyncio
import threading
import time
from typing import Awaitable, Callable


class MinIntervalThrottle:
    """
    Hard floor on request cadence.

    Each caller reserves the next free start slot under a short lock, then
    sleeps outside the lock until that slot arrives, so concurrent callers
    start at least ``min_interval`` seconds apart.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: float | None = None
        self._lock = threading.Lock()

    async def wait(self) -> float:
        """Suspend until the caller may send. Returns the imposed delay."""
        with self._lock:
            now = self._clock()
            start = now
            if self._last_request_time is not None:
                start = max(now, self._last_request_time + self.min_interval)
            self._last_request_time = start
        delay = start - now
        if delay > 0:
            await self._sleep(delay)
        return delay
