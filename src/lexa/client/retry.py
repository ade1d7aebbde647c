"""Bounded retry with linear backoff."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..config import MAX_RETRIES, RETRY_DELAY
from ..errors import LexaError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """How many attempts to make and how long to wait between them."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=MAX_RETRIES, ge=1, description="Total attempts")
    retry_delay: float = Field(default=RETRY_DELAY, ge=0.0, description="Base delay in seconds")

    def delay_for(self, attempt: int) -> float:
        """Delay before the given zero-based attempt (0 for the first)."""
        return self.retry_delay * attempt


class RetryAttempt(BaseModel):
    """Bookkeeping for one attempt; discarded with the request."""

    attempt: int = Field(description="Zero-based attempt number")
    delay: float = Field(default=0.0, description="Seconds slept before this attempt")
    retry_requested: bool = Field(default=False, description="Server asked for a retry")


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_attempt: Callable[[RetryAttempt], None] | None = None,
) -> T:
    """Run an operation, retrying while the server signals a transient condition.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Retry policy (defaults to MAX_RETRIES attempts, RETRY_DELAY base)
        sleep: Awaitable sleep, replaceable in tests
        on_attempt: Optional observer called before each attempt

    Returns:
        The operation's result

    Raises:
        LexaError: The last error once attempts are exhausted, or the first
            non-retryable one. Cancellation propagates untouched.
    """
    policy = policy or RetryPolicy()
    attempt = RetryAttempt(attempt=0)

    while True:
        if attempt.delay:
            await sleep(attempt.delay)
        if on_attempt is not None:
            on_attempt(attempt)

        try:
            return await operation()
        except LexaError as e:
            next_attempt = attempt.attempt + 1
            if not e.is_retryable() or next_attempt >= policy.max_retries:
                raise
            logger.info(
                "Attempt %d/%d failed (%s), retrying",
                next_attempt, policy.max_retries, e.message
            )
            attempt = RetryAttempt(
                attempt=next_attempt,
                delay=policy.delay_for(next_attempt),
                retry_requested=True,
            )
