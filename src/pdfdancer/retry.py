"""
Retry configuration for HTTP requests made by the PDFDancer client.
"""

from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class RetryConfig:
    """
    When and how a failed HTTP request is retried.

    ``max_attempts`` counts the initial request, so 1 means no retries. The delay
    before retry ``n`` (1-based) is ``initial_delay * backoff_multiplier ** (n - 1)``
    seconds, capped at ``max_delay``. A 429 response with a usable Retry-After
    header uses that value instead (also capped).

    Example:
        RetryConfig(max_attempts=3, initial_delay=0.1, retryable_status_codes=frozenset({429, 503}))
    """
    max_attempts: int = 1
    initial_delay: float = 0.1
    backoff_multiplier: float = 2.0
    max_delay: float = 10.0
    retryable_status_codes: FrozenSet[int] = field(default_factory=frozenset)
    retry_on_timeout: bool = False
    retry_on_connection_error: bool = False

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be at least 1.0")
        if self.max_delay < 0:
            raise ValueError("max_delay must be non-negative")
        object.__setattr__(self, "retryable_status_codes", frozenset(self.retryable_status_codes))

    @classmethod
    def no_retry(cls) -> 'RetryConfig':
        return cls(max_attempts=1)

    @classmethod
    def default_config(cls) -> 'RetryConfig':
        """3 attempts, 1s initial delay doubling up to 5s, retrying transient statuses and I/O errors."""
        return cls(
            max_attempts=3,
            initial_delay=1.0,
            backoff_multiplier=2.0,
            max_delay=5.0,
            retryable_status_codes=frozenset({408, 429, 500, 502, 503, 504}),
            retry_on_timeout=True,
            retry_on_connection_error=True,
        )

    def is_retryable_status_code(self, status_code: int) -> bool:
        return status_code in self.retryable_status_codes

    def backoff_delay(self, attempt: int) -> float:
        delay = self.initial_delay * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_delay)
