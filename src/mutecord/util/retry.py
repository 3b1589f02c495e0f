"""Bounded retry with exponential backoff for calls that talk to Discord.

Only the delivery edge uses this: the announcement decision logic never
retries anything itself.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Tuple, Type

import discord

from mutecord.util.logger import get_logger

logger = get_logger("retry")

# Exceptions that should trigger another attempt
RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    discord.HTTPException,
    asyncio.TimeoutError,
    ConnectionError,
)


def is_transient_error(exc: BaseException) -> bool:
    """Client errors such as Forbidden or NotFound fail the same way every time; 429 and 5xx do not."""
    if isinstance(exc, discord.HTTPException):
        status = getattr(exc, "status", 0) or 0
        return status == 429 or status >= 500
    return True


async def retry_async(
    coro_func: Callable[..., Awaitable[Any]],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    exceptions: Tuple[Type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
    should_retry: Callable[[BaseException], bool] = is_transient_error,
    **kwargs: Any,
) -> Any:
    """Await ``coro_func(*args, **kwargs)``, retrying on ``exceptions``.

    Parameters
    ----------
    coro_func:
        Async callable to invoke.
    max_attempts:
        Total number of attempts, including the first one. Must be at least 1.
    base_delay:
        Delay before the second attempt in seconds; doubles after every failure.
    max_delay:
        Upper bound for a single delay.
    exceptions:
        Exception types that trigger a retry. Anything else propagates at once.
    should_retry:
        Predicate applied to a caught exception; False gives up without waiting.

    Returns
    -------
    Any
        Whatever the callable returned on the first successful attempt.

    Raises
    ------
    BaseException
        The last exception once every attempt has failed.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await coro_func(*args, **kwargs)
        except exceptions as exc:
            if not should_retry(exc):
                logger.error("Giving up after attempt %d/%d: %s: %s", attempt, max_attempts, type(exc).__name__, exc)
                raise
            if attempt == max_attempts:
                logger.error("All %d attempts failed: %s: %s", max_attempts, type(exc).__name__, exc)
                raise
            delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
            logger.warning(
                "Attempt %d/%d failed (%s); retrying in %.1fs",
                attempt,
                max_attempts,
                type(exc).__name__,
                delay,
            )
            await asyncio.sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover
