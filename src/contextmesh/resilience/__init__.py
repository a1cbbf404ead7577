"""
Resilience layer - bounded retry with exponential backoff.
"""

from contextmesh.resilience.retry import (
    RetryConfig,
    RetryPolicy,
    RetryResult,
    RetryState,
    with_retry,
)

__all__ = [
    "RetryConfig",
    "RetryPolicy",
    "RetryResult",
    "RetryState",
    "with_retry",
]
