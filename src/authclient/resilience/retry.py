"""
Retry policy for transient request failures.

Decides, from a normalized ApiError and the attempt count of one logical
call, whether the call should be re-issued and how long to wait first:
- Network errors (no response, including timeouts): retry with backoff
- 408/429/500/502/503/504: retry with backoff
- Everything else: surface immediately
"""

import logging
from dataclasses import dataclass, field

from authclient.errors.exceptions import ApiError

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
BASE_DELAY_SECONDS = 1.0
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


@dataclass
class RetryPolicy:
    """
    Bounded exponential backoff without jitter.

    Attributes:
        max_retries: Retries allowed per logical call (attempts = max_retries + 1)
        base_delay: Delay before the first retry, in seconds
        exponential_base: Growth factor between consecutive delays
        retryable_status_codes: HTTP statuses treated as transient
    """

    max_retries: int = MAX_RETRIES
    base_delay: float = BASE_DELAY_SECONDS
    exponential_base: float = 2.0
    retryable_status_codes: frozenset[int] = field(
        default_factory=lambda: RETRYABLE_STATUS_CODES
    )

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.max_retries = int(self.max_retries)
        self.base_delay = float(self.base_delay)
        self.exponential_base = float(self.exponential_base)
        self.retryable_status_codes = frozenset(
            int(s) for s in self.retryable_status_codes
        )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    def is_retryable(self, error: ApiError) -> bool:
        """True for network errors and transient HTTP statuses."""
        if error.is_network_error:
            return True
        return error.status_code in self.retryable_status_codes

    def next_delay(self, attempt: int) -> float:
        """
        Delay before the retry that follows the given attempt.

        Args:
            attempt: 0-indexed count of retries already performed

        Returns:
            base_delay * exponential_base ** attempt, in seconds
        """
        return self.base_delay * (self.exponential_base**attempt)

    def should_retry(self, error: ApiError, attempt: int) -> bool:
        """
        Determine if a failed call should be re-issued.

        Args:
            error: Normalized error from the latest attempt
            attempt: Retries already performed for this logical call

        Returns:
            True if the error is retryable and the budget is not exhausted
        """
        if not self.is_retryable(error):
            return False

        if attempt >= self.max_retries:
            logger.warning(
                "Max retries exhausted",
                extra={
                    "error_code": error.code,
                    "status_code": error.status_code,
                    "retry_count": attempt,
                    "max_attempts": self.max_retries + 1,
                },
            )
            return False

        return True


DEFAULT_RETRY_POLICY = RetryPolicy()

__all__ = [
    "RetryPolicy",
    "DEFAULT_RETRY_POLICY",
    "MAX_RETRIES",
    "BASE_DELAY_SECONDS",
    "RETRYABLE_STATUS_CODES",
]
