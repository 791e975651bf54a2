"""
Exponential backoff retries for calls to the cluster.

The HTTP transport wraps each request in retry_async; transient failures are
surfaced as exceptions listed in RetryConfig.retryable_exceptions and retried
until max_attempts is reached.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Retry policy.

    Attributes:
        max_attempts: Total number of calls, the first one included.
        initial_delay: Seconds to wait before the first retry.
        exponential_base: Growth factor of the delay between retries.
        max_delay: Upper bound for a single delay, None for unbounded.
        retryable_exceptions: Exception types that trigger another attempt.
            Anything else propagates immediately.
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    exponential_base: float = 2.0
    max_delay: Optional[float] = None
    retryable_exceptions: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


class RetryExhaustedException(Exception):
    """Every attempt failed; last_exception holds the final error."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Exception,
        operation_name: Optional[str] = None
    ):
        self.attempts = attempts
        self.last_exception = last_exception
        self.operation_name = operation_name
        super().__init__(message)


def calculate_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: Optional[float] = None
) -> float:
    """
    Delay before retry number ``attempt`` (0-indexed).

    With the transport defaults (20ms, base 2) the waits are 20ms, 40ms,
    80ms and so on, capped at max_delay.
    """
    delay = initial_delay * (exponential_base ** attempt)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


async def retry_async(
    func: Callable[..., T],
    *args: Any,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any
) -> T:
    """
    Await ``func(*args, **kwargs)`` until it succeeds or attempts run out.

    Example:
        response = await retry_async(
            client.send,
            request,
            config=RetryConfig(max_attempts=4, initial_delay=0.02),
            operation_name="GET /_cluster/health",
        )

    Raises:
        RetryExhaustedException: the last attempt raised a retryable error
    """
    policy = config or RetryConfig()
    op_name = operation_name or getattr(func, "__name__", "operation")
    attempts = policy.max_attempts

    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except policy.retryable_exceptions as e:
            error_type = type(e).__name__
            if attempt + 1 >= attempts:
                logger.error(
                    "Giving up on '%s' after %d attempts: %s",
                    op_name,
                    attempts,
                    e,
                    extra={
                        "extra_data": {
                            "operation": op_name,
                            "attempts": attempts,
                            "last_error": str(e),
                            "error_type": error_type,
                        }
                    }
                )
                raise RetryExhaustedException(
                    f"Operation '{op_name}' failed after {attempts} attempts",
                    attempts=attempts,
                    last_exception=e,
                    operation_name=op_name
                ) from e

            delay = calculate_delay(
                attempt, policy.initial_delay, policy.exponential_base, policy.max_delay
            )
            logger.warning(
                "Attempt %d/%d of '%s' failed (%s: %s), retrying in %.3fs",
                attempt + 1,
                attempts,
                op_name,
                error_type,
                e,
                delay,
                extra={
                    "extra_data": {
                        "operation": op_name,
                        "attempt": attempt + 1,
                        "max_attempts": attempts,
                        "delay_seconds": delay,
                        "error_type": error_type,
                    }
                }
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable: max_attempts is at least 1")
