"""
Resilience patterns module.

Components:
    - RetryPolicy: Bounded exponential backoff for transient failures
    - DEFAULT_RETRY_POLICY: Two retries, 1s then 2s
"""

from .retry import (
    BASE_DELAY_SECONDS,
    DEFAULT_RETRY_POLICY,
    MAX_RETRIES,
    RETRYABLE_STATUS_CODES,
    RetryPolicy,
)

__all__ = [
    "RetryPolicy",
    "DEFAULT_RETRY_POLICY",
    "MAX_RETRIES",
    "BASE_DELAY_SECONDS",
    "RETRYABLE_STATUS_CODES",
]
