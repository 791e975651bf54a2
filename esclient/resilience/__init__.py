"""
Resilience patterns for esclient.

This package provides the retry logic used by the HTTP transport to handle
transient failures gracefully.
"""

from esclient.resilience.retry import (
    RetryConfig,
    RetryExhaustedException,
    calculate_delay,
    retry_async,
)

__all__ = [
    "RetryConfig",
    "RetryExhaustedException",
    "calculate_delay",
    "retry_async",
]
