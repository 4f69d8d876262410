"""Exponential backoff for recoverable oracle failures, built on tenacity.

Only PipelineErrors flagged recoverable (transient HTTP statuses, timeouts)
are retried. Everything else, including cancellation, propagates on the
first occurrence.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from lore_extractor.core.config import RetryConfig
from lore_extractor.core.errors import PipelineError

T = TypeVar("T")


def is_recoverable(exc: BaseException) -> bool:
    return isinstance(exc, PipelineError) and exc.recoverable


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = RetryConfig.MAX_ATTEMPTS,
    base_delay: float = RetryConfig.BASE_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Callable[[int, float, PipelineError], None] | None = None,
) -> T:
    """Call fn until it succeeds, a non-recoverable error occurs, or attempts run out.

    Sleeps base_delay * 2**(attempt - 1) between attempts (1s, 2s, 4s...) and
    never after the final attempt.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt.
        max_attempts: Total attempts including the first.
        base_delay: Seconds before the first retry.
        sleep: Awaitable sleep, injectable for tests.
        on_retry: Called with (attempt_number, delay, error) before each sleep.

    Returns:
        fn's result.

    Raises:
        PipelineError: The first non-recoverable error, or the last
            recoverable one once attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def _before_sleep(state: RetryCallState) -> None:
        if on_retry:
            on_retry(state.attempt_number, state.next_action.sleep, state.outcome.exception())

    retrying = AsyncRetrying(
        retry=retry_if_exception(is_recoverable),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        sleep=sleep,
        before_sleep=_before_sleep,
        reraise=True,
    )
    return await retrying(fn)
