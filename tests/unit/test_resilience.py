"""Tests for resilience module."""

import asyncio

import httpx
import pytest

from contextmesh.errors import FileSystemError, NetworkError, ValidationError
from contextmesh.resilience import (
    RetryConfig,
    RetryPolicy,
    with_retry,
)

FAST = RetryConfig(base_delay_ms=1, max_delay_ms=5)


def _retryable(retry_after: float | None = None) -> NetworkError:
    return NetworkError(
        "Server error: The registry is experiencing issues",
        status_code=503,
        retryable=True,
        retry_after=retry_after,
    )


@pytest.fixture
def recorded_sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace asyncio.sleep with a recorder that returns immediately."""
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return sleeps


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self) -> None:
        """Test default retry configuration."""
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay_ms == 1000
        assert config.max_delay_ms == 30000
        assert config.factor == 2.0

    def test_no_retry(self) -> None:
        """Test no-retry configuration."""
        assert RetryConfig.no_retry().max_attempts == 1


class TestRetryPolicy:
    """Tests for RetryPolicy delay and decision logic."""

    def test_calculate_delay_exponential(self) -> None:
        """Test exponential backoff calculation."""
        policy = RetryPolicy(RetryConfig(base_delay_ms=1000, factor=2.0))
        assert policy.calculate_delay(1) == 1000
        assert policy.calculate_delay(2) == 2000
        assert policy.calculate_delay(3) == 4000

    def test_calculate_delay_capped(self) -> None:
        """Test computed delays respect the cap."""
        policy = RetryPolicy(RetryConfig(base_delay_ms=1000, max_delay_ms=5000))
        assert policy.calculate_delay(10) == 5000

    def test_retry_after_overrides(self) -> None:
        """Test a server hint replaces the computed delay."""
        policy = RetryPolicy(RetryConfig(base_delay_ms=1, factor=7.0))
        assert policy.calculate_delay(1, retry_after=10) == 10000

    def test_retry_after_not_capped(self) -> None:
        """Test a server hint above the cap is honored."""
        policy = RetryPolicy(RetryConfig(max_delay_ms=1000))
        assert policy.calculate_delay(1, retry_after=120) == 120000

    def test_zero_retry_after_honored(self) -> None:
        """Test a zero server hint means retry immediately."""
        response = httpx.Response(
            429,
            headers={"retry-after": "0"},
            request=httpx.Request("POST", "https://registry.test/v1/connectors"),
        )
        error = NetworkError.from_response(response)
        policy = RetryPolicy(RetryConfig(base_delay_ms=1000))
        assert error.retry_delay == 0.0
        assert policy.calculate_delay(1, policy.get_retry_after(error)) == 0.0

    def test_delays_deterministic(self) -> None:
        """Test the same attempt always yields the same delay."""
        policy = RetryPolicy()
        assert {policy.calculate_delay(2) for _ in range(10)} == {2000}

    def test_should_retry(self) -> None:
        """Test only retryable network errors below the limit are retried."""
        policy = RetryPolicy(RetryConfig(max_attempts=3))
        assert policy.should_retry(_retryable(), 1)
        assert policy.should_retry(_retryable(), 2)
        assert not policy.should_retry(_retryable(), 3)
        assert not policy.should_retry(NetworkError("Conflict", status_code=409), 1)
        assert not policy.should_retry(ValidationError("bad"), 1)
        assert not policy.should_retry(FileSystemError("io"), 1)
        assert not policy.should_retry(RuntimeError("boom"), 1)


class TestWithRetry:
    """Tests for with_retry."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self) -> None:
        """Test a successful operation runs once."""
        calls = 0

        async def operation() -> str:
            nonlocal calls
            calls += 1
            return "ok"

        assert await with_retry(operation, FAST) == "ok"
        assert calls == 1

    @pytest.mark.asyncio
    async def test_recovers_after_failures(self) -> None:
        """Test transient failures are retried until success."""
        calls = 0

        async def operation() -> str:
            nonlocal calls
            calls += 1
            if calls < 3:
                raise _retryable()
            return "ok"

        assert await with_retry(operation, FAST) == "ok"
        assert calls == 3

    @pytest.mark.asyncio
    async def test_bounded_attempts(self) -> None:
        """Test a persistent retryable error stops after max attempts."""
        error = _retryable()
        calls = 0

        async def operation() -> None:
            nonlocal calls
            calls += 1
            raise error

        with pytest.raises(NetworkError) as exc_info:
            await with_retry(operation, RetryConfig(max_attempts=3, base_delay_ms=1))
        assert calls == 3
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_non_retryable_runs_once(self) -> None:
        """Test non-retryable errors propagate immediately."""
        error = NetworkError("Conflict: Resource already exists", status_code=409)
        calls = 0

        async def operation() -> None:
            nonlocal calls
            calls += 1
            raise error

        with pytest.raises(NetworkError) as exc_info:
            await with_retry(operation, FAST)
        assert calls == 1
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_other_kinds_run_once(self) -> None:
        """Test errors outside the network kind are never retried."""
        calls = 0

        async def operation() -> None:
            nonlocal calls
            calls += 1
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await with_retry(operation, FAST)
        assert calls == 1

    @pytest.mark.asyncio
    async def test_observer_and_hint(self, recorded_sleeps: list[float]) -> None:
        """Test the observer sees each retry and the hint drives the wait."""
        observed: list[tuple[int, Exception, float]] = []
        errors = [_retryable(retry_after=10), _retryable()]

        async def operation() -> str:
            if errors:
                raise errors.pop(0)
            return "done"

        result = await with_retry(
            operation,
            RetryConfig(base_delay_ms=1000, factor=2.0),
            lambda attempt, error, delay: observed.append((attempt, error, delay)),
        )
        assert result == "done"
        assert [(a, d) for a, _, d in observed] == [(1, 10000.0), (2, 2000.0)]
        assert recorded_sleeps == [10.0, 2.0]


class TestExecute:
    """Tests for RetryPolicy.execute results."""

    @pytest.mark.asyncio
    async def test_result_on_failure(self) -> None:
        """Test the result records attempts and the final error."""
        policy = RetryPolicy(RetryConfig(max_attempts=2, base_delay_ms=1))

        async def operation() -> None:
            raise _retryable()

        result = await policy.execute(operation)
        assert not result.success
        assert result.attempts == 2
        assert isinstance(result.error, NetworkError)
        assert result.total_delay_ms == 1
