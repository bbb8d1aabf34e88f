"""Tests for the retry executor."""

import pytest

from atom_ops.alerter.classifier import is_retryable
from atom_ops.retry import RetryPolicy, retrying, with_retry


class Flaky:
    """Operation that fails a fixed number of times, then succeeds."""

    def __init__(self, failures: int, error: Exception | None = None):
        self.failures = failures
        self.error = error or ConnectionRefusedError("connection refused")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_always_failing_makes_max_retries_plus_one_attempts(self):
        op = Flaky(failures=100, error=RuntimeError("still broken"))
        sleep = SleepRecorder()

        with pytest.raises(RuntimeError, match="still broken"):
            await with_retry(op, RetryPolicy(max_retries=3, delay=0.5), sleep=sleep)

        assert op.calls == 4
        assert sleep.delays == [0.5, 0.5, 0.5]

    @pytest.mark.asyncio
    async def test_rejected_error_single_attempt(self):
        op = Flaky(failures=100)
        sleep = SleepRecorder()
        policy = RetryPolicy(max_retries=3, should_retry=lambda e: False)

        with pytest.raises(ConnectionRefusedError):
            await with_retry(op, policy, sleep=sleep)

        assert op.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        op = Flaky(failures=2)
        sleep = SleepRecorder()

        result = await with_retry(op, RetryPolicy(max_retries=3, delay=1), sleep=sleep)

        assert result == "ok"
        assert op.calls == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_zero_retries(self):
        op = Flaky(failures=1)
        with pytest.raises(ConnectionRefusedError):
            await with_retry(op, RetryPolicy(max_retries=0), sleep=SleepRecorder())
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_sync_operation(self):
        calls = []

        def op():
            calls.append(1)
            if len(calls) < 2:
                raise ConnectionRefusedError()
            return 42

        assert await with_retry(op, RetryPolicy(delay=0), sleep=SleepRecorder()) == 42
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_classifier_predicate(self):
        """Validation errors are not retried when using is_retryable."""
        op = Flaky(failures=100, error=ValueError("Invalid guild id"))
        policy = RetryPolicy(max_retries=3, should_retry=is_retryable)

        with pytest.raises(ValueError):
            await with_retry(op, policy, sleep=SleepRecorder())

        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_real_sleep_with_zero_delay(self):
        op = Flaky(failures=1)
        assert await with_retry(op, RetryPolicy(delay=0)) == "ok"


class TestRetryPolicy:
    def test_fixed_delay_by_default(self):
        policy = RetryPolicy(delay=2)
        assert [policy.delay_for(i) for i in range(3)] == [2, 2, 2]

    def test_exponential_backoff_capped(self):
        policy = RetryPolicy(delay=1, backoff=2, max_delay=5)
        assert [policy.delay_for(i) for i in range(4)] == [1, 2, 4, 5]


class TestRetryingDecorator:
    @pytest.mark.asyncio
    async def test_decorated_function_retries(self):
        calls = []

        @retrying(RetryPolicy(max_retries=2, delay=0))
        async def fetch(value):
            calls.append(value)
            if len(calls) < 3:
                raise ConnectionRefusedError()
            return value * 2

        assert await fetch(21) == 42
        assert calls == [21, 21, 21]
