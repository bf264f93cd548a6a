"""Releases Notifier — Retry Helper.

Exponential-backoff retry decorator for calls to external services.

Usage:
    @retry_async(max_attempts=3, base_delay=2.0, exceptions=(httpx.TransportError,))
    async def flaky_call():
        ...
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, Optional, Sequence, Type

from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)


def retry_async(
    max_attempts: int = 3,
    base_delay: float = 2.0,
    max_delay: float = 60.0,
    exceptions: Sequence[Type[BaseException]] = (Exception,),
    attempts_attr: Optional[str] = None,
) -> Callable:
    """Retry an async function on the given exceptions.

    Delay before retry n is base_delay * 2^(n-1), capped at max_delay.

    Args:
        max_attempts: Total attempts, including the first one.
        base_delay: Delay before the first retry, in seconds.
        max_delay: Upper bound for a single delay.
        exceptions: Exception types that trigger a retry; anything else
            propagates immediately.
        attempts_attr: Name of an attribute on the decorated method's
            instance that overrides max_attempts at call time (used to
            take the limit from configuration).

    Returns:
        Decorator function.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempts = max_attempts
            if attempts_attr and args:
                attempts = max(1, int(getattr(args[0], attempts_attr, max_attempts)))

            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except tuple(exceptions) as e:
                    if attempt == attempts:
                        logger.warning(
                            "Retry exhausted for %s after %d attempts: %s",
                            func.__name__, attempts, e,
                        )
                        raise
                    delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                    logger.debug(
                        "Retry %d/%d for %s in %.1fs: %s",
                        attempt, attempts, func.__name__, delay, e,
                    )
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
