"""Resilience utilities for the ledger engine.

This module provides standard retry policies for handling transient failures
of the authoritative backends (Redis, ledger service, notification service).
"""

import logging
from typing import Callable, TypeVar

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from cc_core_lib.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Standard retry policy for backend startup connections
# - Wait 2^x * 1 seconds between retries (2s, 4s, 8s, 16s, 32s)
# - Stop after 5 attempts (total ~62s wait time)
# - Log warnings before sleeping
# - Re-raise the exception if all retries fail
service_startup_retry = retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=2, max=32),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def create_backend_retry(
    max_attempts: int = 3,
    min_wait: float = 0,
    max_wait: float = 4,
    multiplier: float = 0.5,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a retry decorator for ledger and notification backend calls.

    Only ServiceUnavailableError is retried. Validation errors (NotFoundError,
    InvalidOperationError, InsufficientBalanceError) fail immediately. Retrying
    awards is safe because try_award is idempotent per (user_id, unit_id).

    Args:
        max_attempts: Maximum number of attempts (including the first)
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        multiplier: Exponential backoff multiplier

    Returns:
        A retry decorator that re-raises the last ServiceUnavailableError

    Example:
        ```python
        award_retry = create_backend_retry(max_attempts=5)

        result = await award_retry(ledger.try_award)("user-1", "cf-1", 8)
        ```
    """
    return retry(
        retry=retry_if_exception_type(ServiceUnavailableError),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def is_retryable(exc: BaseException) -> bool:
    """True if the error is transient and the caller may retry the action"""
    return bool(getattr(exc, "retryable", False))
