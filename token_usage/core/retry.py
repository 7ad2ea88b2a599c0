"""
Retry Policy
============
Bounded retry with exponential backoff for required external dependencies.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 2.0


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a failed attempt before sleeping."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "Attempt failed, retrying",
        operation=getattr(retry_state.fn, "__name__", repr(retry_state.fn)),
        attempt=retry_state.attempt_number,
        delay=delay,
        error=str(exc),
    )


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    retry_on: type[BaseException] | tuple[type[BaseException], ...] = Exception,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await ``fn`` until it succeeds or ``max_attempts`` is exhausted.

    The delay doubles after every failure, starting at ``base_delay``
    (2, 4, 8, 16 seconds with the defaults). Only exceptions matching
    ``retry_on`` are retried; the last one is re-raised unchanged.

    Args:
        fn: Zero-argument coroutine function to call
        max_attempts: Total number of calls, including the first
        base_delay: Delay in seconds before the second attempt
        retry_on: Exception type(s) that trigger a retry
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        Whatever ``fn`` returns on its first successful call
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(fn)
