from __future__ import annotations

import random

from pydantic import BaseModel, Field, field_validator


class RetryPolicy(BaseModel):
    """Retry policy for HTTP requests.

    The generation workflow treats retry as a caller decision, so the
    default is a single attempt. Raise ``max_attempts`` to opt into
    exponential backoff with jitter for transient statuses.

    Args:
        max_attempts: Maximum number of attempts (including initial request)
        base_delay_s: Base delay in seconds for exponential backoff
        max_delay_s: Maximum delay in seconds (caps exponential growth)
        jitter: Jitter as fraction of delay (0.15 = +/-15% randomization)
        retry_on_status: HTTP status codes that trigger retries
        retry_methods: HTTP methods eligible for retry (idempotent by default)
        allow_non_idempotent: Allow retrying POST (would create duplicate operations)
    """

    model_config = {"frozen": True}

    max_attempts: int = Field(default=1, ge=1)
    base_delay_s: float = Field(default=0.5, ge=0.0)
    max_delay_s: float = Field(default=8.0, ge=0.0)
    jitter: float = Field(default=0.15, ge=0.0, le=1.0)
    retry_on_status: tuple[int, ...] = (429, 500, 502, 503, 504)
    retry_methods: tuple[str, ...] = ("GET", "HEAD")
    allow_non_idempotent: bool = False

    @field_validator("max_delay_s")
    @classmethod
    def validate_max_delay(cls, v: float, info) -> float:
        """Ensure max_delay_s >= base_delay_s."""
        base = info.data.get("base_delay_s", 0.5)
        if v < base:
            raise ValueError("max_delay_s must be >= base_delay_s")
        return v

    def allows_method(self, method: str) -> bool:
        """Check if the given HTTP method is eligible for retry."""
        if method.upper() in self.retry_methods:
            return True
        return self.allow_non_idempotent

    def should_retry(self, method: str, attempt: int, status_code: int | None = None) -> bool:
        """Decide whether a failed attempt is retried.

        Args:
            method: HTTP method of the failed request
            attempt: Attempt number that just failed (1-indexed)
            status_code: Response status, or None for transport failures

        Returns:
            True if another attempt should be made
        """
        if attempt >= self.max_attempts or not self.allows_method(method):
            return False
        if status_code is None:
            return True
        return status_code in self.retry_on_status

    def compute_delay(self, attempt: int) -> float:
        """Compute retry delay with exponential backoff and jitter.

        Args:
            attempt: Attempt number (1-indexed, 1 = first retry after initial failure)

        Returns:
            Delay in seconds before next retry
        """
        delay: float = min(self.max_delay_s, self.base_delay_s * (2 ** (attempt - 1)))
        if self.jitter > 0:
            spread = delay * self.jitter
            delay = max(0.0, delay + random.uniform(-spread, spread))
        return delay


def parse_retry_after_seconds(value: str | None) -> float | None:
    """Parse a numeric Retry-After header value to seconds."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
