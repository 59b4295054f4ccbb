"""Tests for RetryExecutor — attempt counting, backoff schedule, error propagation."""

import asyncio

import pytest

from navigator_access.common.exceptions import PermissionNotFoundError, RemoteTransientError
from navigator_access.common.retry import DEFAULT_RETRY_POLICY, RetryExecutor, RetryPolicy


class Flaky:
    """Fails ``failures`` times, then returns ``value``."""

    def __init__(self, failures: int, value="ok", exc_type=RemoteTransientError):
        self.failures = failures
        self.value = value
        self.exc_type = exc_type
        self.attempts = 0

    async def __call__(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.exc_type(f"failure {self.attempts}")
        return self.value


@pytest.fixture
def recorded():
    return []


@pytest.fixture
def executor(recorded):
    async def record_sleep(seconds):
        recorded.append(seconds)

    return RetryExecutor(RetryPolicy(max_retries=3, base_delay_ms=1000, max_delay_ms=10000), sleep=record_sleep)


class TestRetryPolicy:
    def test_defaults(self):
        assert DEFAULT_RETRY_POLICY == RetryPolicy(max_retries=3, base_delay_ms=1000, max_delay_ms=10000)

    def test_delay_doubles(self):
        policy = RetryPolicy()
        assert [policy.delay_for(n) for n in range(3)] == [1.0, 2.0, 4.0]

    def test_delay_capped(self):
        policy = RetryPolicy(max_retries=6, base_delay_ms=1000, max_delay_ms=10000)
        assert policy.delay_for(3) == 8.0
        assert policy.delay_for(4) == 10.0
        assert policy.delay_for(10) == 10.0

    def test_negative_values_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)

    def test_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_RETRY_POLICY.max_retries = 5


class TestRetryExecutor:
    async def test_success_first_try(self, executor, recorded):
        op = Flaky(0, value=42)
        assert await executor.execute(op) == 42
        assert op.attempts == 1
        assert recorded == []

    async def test_fails_max_retries_then_succeeds(self, executor, recorded):
        op = Flaky(3, value="done")
        assert await executor.execute(op) == "done"
        assert op.attempts == 4
        assert recorded == [1.0, 2.0, 4.0]

    async def test_always_failing_raises_last_error(self, executor, recorded):
        op = Flaky(100)
        with pytest.raises(RemoteTransientError, match="failure 4"):
            await executor.execute(op)
        assert op.attempts == 4
        assert recorded == [1.0, 2.0, 4.0]

    async def test_delays_follow_capped_schedule(self, recorded):
        async def record_sleep(seconds):
            recorded.append(seconds)

        executor = RetryExecutor(
            RetryPolicy(max_retries=5, base_delay_ms=1000, max_delay_ms=5000),
            sleep=record_sleep,
        )
        with pytest.raises(RemoteTransientError):
            await executor.execute(Flaky(100))
        assert recorded == [1.0, 2.0, 4.0, 5.0, 5.0]

    async def test_zero_retries_is_single_attempt(self, recorded):
        async def record_sleep(seconds):
            recorded.append(seconds)

        executor = RetryExecutor(RetryPolicy(max_retries=0), sleep=record_sleep)
        op = Flaky(1)
        with pytest.raises(RemoteTransientError):
            await executor.execute(op)
        assert op.attempts == 1
        assert recorded == []

    async def test_error_is_not_wrapped(self, executor):
        boom = RemoteTransientError("boom", status_code=503)

        async def op():
            raise boom

        with pytest.raises(RemoteTransientError) as info:
            await executor.execute(op)
        assert info.value is boom

    async def test_unlisted_exception_not_retried(self, executor, recorded):
        op = Flaky(5, exc_type=KeyError)
        with pytest.raises(KeyError):
            await executor.execute(op, retry_on=(RemoteTransientError,))
        assert op.attempts == 1
        assert recorded == []

    async def test_give_up_on_short_circuits(self, executor, recorded):
        op = Flaky(5, exc_type=PermissionNotFoundError)
        with pytest.raises(PermissionNotFoundError):
            await executor.execute(op, give_up_on=(PermissionNotFoundError,))
        assert op.attempts == 1
        assert recorded == []

    async def test_each_call_gets_fresh_counter(self, executor, recorded):
        assert await executor.execute(Flaky(3)) == "ok"
        assert await executor.execute(Flaky(3)) == "ok"
        assert recorded == [1.0, 2.0, 4.0, 1.0, 2.0, 4.0]

    async def test_sleep_yields_to_other_tasks(self):
        executor = RetryExecutor(RetryPolicy(max_retries=1, base_delay_ms=20, max_delay_ms=20))
        order = []

        async def slow_retry():
            op = Flaky(1)
            await executor.execute(op)
            order.append("retried")

        async def other():
            order.append("other")

        await asyncio.gather(slow_retry(), other())
        assert order == ["other", "retried"]
