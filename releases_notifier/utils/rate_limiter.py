"""Releases Notifier — Async Rate Limiter.

Sliding-window limiter used to pace requests to the GitHub API during
update checks.
"""

from __future__ import annotations

import asyncio
import time

from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)


class AsyncRateLimiter:
    """Allow at most max_calls acquisitions per period_seconds.

    Attributes:
        max_calls: Calls allowed inside one window.
        period: Window length in seconds.
    """

    def __init__(self, max_calls: int, period_seconds: float) -> None:
        self.max_calls = max_calls
        self.period = period_seconds
        self._timestamps: list[float] = []
        self._lock = asyncio.Lock()

    def _cleanup_expired(self) -> None:
        cutoff = time.monotonic() - self.period
        self._timestamps = [ts for ts in self._timestamps if ts > cutoff]

    async def acquire(self) -> None:
        """Wait until a slot is free, then take it.

        Waiters are served one at a time in arrival order.
        """
        async with self._lock:
            while True:
                self._cleanup_expired()
                if len(self._timestamps) < self.max_calls:
                    self._timestamps.append(time.monotonic())
                    return

                wait_time = self._timestamps[0] + self.period - time.monotonic()
                if wait_time > 0:
                    logger.debug(
                        "Rate limit reached (%d/%d). Waiting %.2f seconds...",
                        len(self._timestamps), self.max_calls, wait_time,
                    )
                    await asyncio.sleep(wait_time)

    async def __aenter__(self) -> "AsyncRateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, *args: object) -> None:
        pass

    def __repr__(self) -> str:
        return f"AsyncRateLimiter(max_calls={self.max_calls}, period={self.period}s)"
