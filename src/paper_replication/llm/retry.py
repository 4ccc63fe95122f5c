"""Retry policy shared by outbound model calls."""

from dataclasses import dataclass, field
from typing import Callable, Optional


def is_retryable_status(status_code: Optional[int]) -> bool:
    """Rate limits and server-side faults are worth another attempt."""
    if status_code is None:
        return False
    return status_code == 429 or status_code >= 500


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times a model call is attempted and how long to wait between tries.

    The default of a single attempt means failures surface immediately.
    """

    max_attempts: int = 1
    backoff_seconds: float = 0.35
    retryable: Callable[[Optional[int]], bool] = field(default=is_retryable_status)

    def delay_for(self, attempt: int) -> float:
        """Linear backoff after the given 1-based attempt."""
        return self.backoff_seconds * attempt

    def should_retry(self, attempt: int, status_code: Optional[int]) -> bool:
        return attempt < self.max_attempts and self.retryable(status_code)


NO_RETRY = RetryPolicy()
