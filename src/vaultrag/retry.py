# src/vaultrag/retry.py
"""Retry with exponential backoff for async operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from vaultrag.exceptions import is_rate_limit_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[BaseException, int, float], None]
"""Called before each backoff sleep with (error, failed_attempt, delay_seconds)."""


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how long to retry a failing operation.

    Attributes:
        max_attempts: Total attempts including the first one.
        base_delay: Delay in seconds after the first failed attempt.
        multiplier: Growth factor applied to the delay after each attempt.
        max_delay: Upper bound on any single delay, in seconds.
        is_retryable: Predicate deciding whether an error is worth retrying.
    """

    max_attempts: int = 8
    base_delay: float = 2.0
    multiplier: float = 2.0
    max_delay: float = 60.0
    is_retryable: Callable[[BaseException], bool] = field(default=is_rate_limit_error)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        delay = self.base_delay * (self.multiplier ** (attempt - 1))
        return min(delay, self.max_delay)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    on_retry: RetryCallback | None = None,
) -> T:
    """Run operation, retrying retryable errors until the policy is exhausted.

    Non-retryable errors and the error of the final attempt propagate unchanged.
    Only the calling task sleeps during backoff.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as error:
            if attempt >= policy.max_attempts or not policy.is_retryable(error):
                raise
            delay = policy.delay_for(attempt)
            logger.debug(
                "Attempt %d/%d failed (%s); retrying in %.1fs",
                attempt,
                policy.max_attempts,
                error,
                delay,
            )
            if on_retry is not None:
                on_retry(error, attempt, delay)
            await asyncio.sleep(delay)
            attempt += 1
