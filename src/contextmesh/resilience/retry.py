"""
Retry policy with exponential backoff.

Wraps an idempotent async operation, retrying only errors classified as
transient and honoring server-supplied retry-after hints.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from contextmesh.errors import NetworkError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry policy.

    Attributes:
        max_attempts: Total attempts including the first (1 = no retries)
        base_delay_ms: Delay before the first retry in milliseconds
        max_delay_ms: Cap for computed delays in milliseconds
        factor: Exponential growth factor
    """

    max_attempts: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30000
    factor: float = 2.0

    @classmethod
    def no_retry(cls) -> RetryConfig:
        """Create a config that disables retries."""
        return cls(max_attempts=1)


@dataclass
class RetryState:
    """State of a single retry loop.

    Attributes:
        attempt: Attempts made so far (1-based once started)
        last_error: Most recent failure
        delay_ms: Delay computed before the next attempt
        total_delay_ms: Sum of all waits
    """

    attempt: int = 0
    last_error: Exception | None = None
    delay_ms: float = 0.0
    total_delay_ms: float = 0.0


@dataclass
class RetryResult:
    """Result of a retry operation.

    Attributes:
        success: Whether the operation succeeded
        value: The result value (if success)
        error: The last error (if failed)
        attempts: Number of attempts made
        total_delay_ms: Total delay from retries in milliseconds
    """

    success: bool
    value: Any = None
    error: Exception | None = None
    attempts: int = 0
    total_delay_ms: float = 0.0


class RetryPolicy:
    """Retry policy with exponential backoff.

    Example:
        >>> policy = RetryPolicy(RetryConfig(max_attempts=3))
        >>> result = await policy.execute(create_record)
        >>> if result.success:
        ...     print(result.value)
        ... else:
        ...     print(f"Failed after {result.attempts} attempts")
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        """Initialize retry policy.

        Args:
            config: Retry configuration
        """
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    def calculate_delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Calculate delay after a failed attempt.

        Args:
            attempt: The attempt that just failed (1-based)
            retry_after: Optional retry-after hint from server, in seconds

        Returns:
            Delay in milliseconds
        """
        # Server hint is authoritative and not capped
        if retry_after is not None and retry_after >= 0:
            return retry_after * 1000.0

        delay_ms = self._config.base_delay_ms * (
            self._config.factor ** (attempt - 1)
        )
        return min(delay_ms, self._config.max_delay_ms)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """Check if an error should trigger another attempt.

        Args:
            error: The exception that occurred
            attempt: The attempt that just failed (1-based)

        Returns:
            True if should retry
        """
        if attempt >= self._config.max_attempts:
            return False
        if isinstance(error, NetworkError):
            return error.is_retryable()
        # Only network failures are transient
        return False

    def get_retry_after(self, error: Exception) -> float | None:
        """Get retry-after hint from error, in seconds."""
        if isinstance(error, NetworkError):
            return error.retry_delay
        return None

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, Exception, float], None] | None = None,
    ) -> RetryResult:
        """Execute an operation with retry.

        Attempts never overlap: each retry starts after the previous attempt
        has failed and the delay has elapsed.

        Args:
            operation: Async operation to execute
            on_retry: Optional callback called before each retry with
                (attempt, error, delay_ms)

        Returns:
            RetryResult with success status and value/error
        """
        state = RetryState()

        while True:
            state.attempt += 1
            try:
                value = await operation()
            except Exception as e:
                state.last_error = e
                if not self.should_retry(e, state.attempt):
                    return RetryResult(
                        success=False,
                        error=e,
                        attempts=state.attempt,
                        total_delay_ms=state.total_delay_ms,
                    )

                state.delay_ms = self.calculate_delay(state.attempt, self.get_retry_after(e))
                state.total_delay_ms += state.delay_ms

                if on_retry:
                    on_retry(state.attempt, e, state.delay_ms)

                await asyncio.sleep(state.delay_ms / 1000.0)
            else:
                return RetryResult(
                    success=True,
                    value=value,
                    attempts=state.attempt,
                    total_delay_ms=state.total_delay_ms,
                )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """Execute an operation with retry, raising on failure.

    Args:
        operation: Async operation to execute
        config: Retry configuration
        on_retry: Optional callback called before each retry

    Returns:
        Operation result

    Raises:
        The original exception from the last attempt, unchanged
    """
    policy = RetryPolicy(config)
    result = await policy.execute(operation, on_retry)

    if result.success:
        return result.value
    raise result.error  # type: ignore[misc]
