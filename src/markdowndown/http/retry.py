"""Retry policy and HTTP status classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff policy.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1)
        base_delay: Delay before the first retry, in seconds
    """

    max_retries: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Delay after a failed attempt (0-indexed): base_delay * 2**attempt."""
        return self.base_delay * (2**attempt)


class StatusOutcome(str, Enum):
    """What the client should do with a received HTTP status."""

    SUCCESS = "success"
    RETRY = "retry"
    MISSING_TOKEN = "missing_token"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    TERMINAL = "terminal"


def classify_status(status: int) -> StatusOutcome:
    """
    Map an HTTP status code to exactly one outcome.

        2xx          SUCCESS
        401          MISSING_TOKEN
        403          PERMISSION_DENIED
        404          NOT_FOUND
        429, 5xx     RETRY
        anything else TERMINAL (1xx, unfollowed 3xx, other 4xx)
    """
    if 200 <= status < 300:
        return StatusOutcome.SUCCESS
    if status == 401:
        return StatusOutcome.MISSING_TOKEN
    if status == 403:
        return StatusOutcome.PERMISSION_DENIED
    if status == 404:
        return StatusOutcome.NOT_FOUND
    if status == 429 or 500 <= status < 600:
        return StatusOutcome.RETRY
    return StatusOutcome.TERMINAL
