"""Unit tests for the retry controller."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from lexa.client import RetryPolicy, run_with_retry
from lexa.config import MAX_RETRIES
from lexa.errors import (
    AuthenticationError,
    FatalUpstreamError,
    TransientUpstreamError,
    ValidationError,
)


class FlakyOperation:
    """Fails with the given errors in turn, then returns "ok"."""

    def __init__(self, *errors: Exception):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


class TestRetryPolicy:
    """Tests for RetryPolicy model."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == MAX_RETRIES == 3
        assert policy.retry_delay == 1.0

    def test_linear_schedule(self):
        policy = RetryPolicy(retry_delay=1.0)
        assert [policy.delay_for(n) for n in range(4)] == [0.0, 1.0, 2.0, 3.0]

    def test_at_least_one_attempt(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=0)

    @given(st.integers(min_value=1, max_value=10), st.floats(min_value=0.0, max_value=5.0))
    def test_total_delay_is_triangular(self, attempts: int, delay: float):
        """Property test: total sleep over all retries is delay * (1 + ... + n-1)."""
        policy = RetryPolicy(max_retries=attempts, retry_delay=delay)
        total = sum(policy.delay_for(n) for n in range(1, attempts))
        assert total == pytest.approx(delay * attempts * (attempts - 1) / 2)


class TestRunWithRetry:
    """Tests for run_with_retry."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, sleep_recorder):
        operation = FlakyOperation()
        assert await run_with_retry(operation, sleep=sleep_recorder) == "ok"
        assert operation.calls == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_always_retryable_makes_exactly_max_attempts(self, sleep_recorder):
        """Test the retry bound: 3 attempts, 1s + 2s of backoff, then the error."""
        operation = FlakyOperation(*[TransientUpstreamError("busy", 429) for _ in range(10)])

        with pytest.raises(TransientUpstreamError):
            await run_with_retry(operation, RetryPolicy(), sleep=sleep_recorder)

        assert operation.calls == 3
        assert sleep_recorder.delays == [1.0, 2.0]
        assert sum(sleep_recorder.delays) == 3.0

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, sleep_recorder):
        operation = FlakyOperation(TransientUpstreamError("busy"))
        assert await run_with_retry(operation, sleep=sleep_recorder) == "ok"
        assert operation.calls == 2
        assert sleep_recorder.delays == [1.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        FatalUpstreamError("billing", 402),
        AuthenticationError("no token"),
        ValidationError("too long"),
    ])
    async def test_non_retryable_raises_immediately(self, sleep_recorder, error):
        operation = FlakyOperation(error)

        with pytest.raises(type(error)):
            await run_with_retry(operation, sleep=sleep_recorder)

        assert operation.calls == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate(self, sleep_recorder):
        operation = FlakyOperation(RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await run_with_retry(operation, sleep=sleep_recorder)

        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_on_attempt_observer(self, sleep_recorder):
        seen = []
        operation = FlakyOperation(TransientUpstreamError("a"), TransientUpstreamError("b"))

        await run_with_retry(operation, sleep=sleep_recorder, on_attempt=seen.append)

        assert [a.attempt for a in seen] == [0, 1, 2]
        assert [a.retry_requested for a in seen] == [False, True, True]
