"""
Bounded retry for async operations.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

T = TypeVar("T")


def retry_all(exc: BaseException) -> bool:
    return isinstance(exc, Exception)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    retryable: Callable[[BaseException], bool] = retry_all,
    delay: float = 0.0,
    description: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds or ``attempts`` are used up.

    Errors rejected by ``retryable`` propagate immediately. When the budget
    is exhausted the error from the last attempt propagates unchanged.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        attempts: Total number of attempts (>= 1)
        retryable: Predicate deciding whether an error is worth another attempt
        delay: Seconds to sleep between attempts
        description: Label used in log messages
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as e:
            if not retryable(e) or attempt == attempts - 1:
                logger.error(f"{description} failed (attempt {attempt + 1}/{attempts}): {e}")
                raise
            logger.warning(
                f"{description} failed, retrying (attempt {attempt + 1}/{attempts}): {e}"
            )
            if delay > 0:
                await asyncio.sleep(delay)

    raise AssertionError("unreachable")
