"""Retry decisions for failed requests."""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from library_sync.config.api import APIConfig


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    delay: float = 0.0


NO_RETRY = RetryDecision(retry=False)


class RetryPolicy:
    """Exponential backoff over a fixed set of transient status codes.

    The policy knows nothing about the transport: it maps a status code and
    a 0-based attempt index to a decision, so it can be tested on its own.
    """

    def __init__(
        self,
        base_delay: float = APIConfig.RETRY_BASE_DELAY,
        max_retries: int = APIConfig.MAX_RETRIES,
        retryable_codes: Iterable[int] = APIConfig.RETRYABLE_STATUS_CODES,
    ):
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.base_delay = base_delay
        self.max_retries = max_retries
        self.retryable_codes: FrozenSet[int] = frozenset(retryable_codes)

    def is_retryable(self, status_code: Optional[int]) -> bool:
        return status_code is not None and status_code in self.retryable_codes

    def should_retry(self, status_code: Optional[int], attempt: int) -> RetryDecision:
        """Decide whether the failed attempt ``attempt`` (0-based) gets another try."""
        if attempt >= self.max_retries or not self.is_retryable(status_code):
            return NO_RETRY
        return RetryDecision(retry=True, delay=self.base_delay * (2**attempt))
