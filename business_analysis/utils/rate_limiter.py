"""Async sliding-window throttle for outbound API calls."""

import asyncio
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window rate limiter for coroutines.

    Usage::

        limiter = RateLimiter(max_calls=10, period=1.0, name="places")
        async with limiter:
            await client.get(...)
    """

    def __init__(self, max_calls: int = 60, period: float = 60.0, name: str = "default"):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        self._max_calls = max_calls
        self._period = period
        self._name = name
        self._calls: list[float] = []
        self._lock: Optional[asyncio.Lock] = None

    def _wait_time(self, now: float) -> float:
        self._calls = [t for t in self._calls if now - t < self._period]
        if len(self._calls) < self._max_calls:
            return 0.0
        return self._period - (now - self._calls[0])

    async def acquire(self) -> None:
        """Wait until a call slot is free, then claim it."""
        # Lock is created lazily so the limiter can be built outside a loop.
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            while True:
                wait = self._wait_time(time.monotonic())
                if wait <= 0:
                    break
                logger.debug("RateLimiter(%s) sleeping %.2fs", self._name, wait)
                await asyncio.sleep(wait)
            self._calls.append(time.monotonic())

    @property
    def in_window(self) -> int:
        """Number of calls recorded in the current window."""
        self._wait_time(time.monotonic())
        return len(self._calls)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, *args):
        return None
