"""Utility Functions"""

from cc_core_lib.utils.resilience import (
    service_startup_retry,
    create_backend_retry,
    is_retryable,
)

__all__ = [
    "service_startup_retry",
    "create_backend_retry",
    "is_retryable",
]
