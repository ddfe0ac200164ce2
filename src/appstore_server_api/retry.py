"""Backoff schedule for retrying transient transport failures."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .exceptions import ConfigurationError


class TransientErrorKind(enum.Enum):
    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    wait_for: float = 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff without jitter.

    ``tries`` counts the initial attempt, so ``tries=3`` means at most two
    retries. The wait before retry *n* is
    ``min(base_interval * multiplier ** (n - 1), max_interval)``.
    """

    tries: int = 3
    base_interval: float = 0.5
    multiplier: float = 1.5
    max_interval: float = 60.0
    max_elapsed_time: float | None = 900.0

    def __post_init__(self) -> None:
        if self.tries < 1:
            raise ConfigurationError("tries must be at least 1")
        if self.base_interval <= 0:
            raise ConfigurationError("base_interval must be greater than 0")
        if self.multiplier <= 0:
            raise ConfigurationError("multiplier must be greater than 0")
        if self.max_interval <= 0:
            raise ConfigurationError("max_interval must be greater than 0")
        if self.max_elapsed_time is not None and self.max_elapsed_time <= 0:
            raise ConfigurationError("max_elapsed_time must be greater than 0")

    def wait_for(self, attempt: int) -> float:
        return min(self.base_interval * self.multiplier ** max(0, attempt - 1), self.max_interval)

    def should_retry(
        self,
        attempt: int,
        elapsed: float,
        error: TransientErrorKind | None,
    ) -> RetryDecision:
        """Decide whether the failed ``attempt`` (1-indexed) gets another try."""
        if error is None:
            return RetryDecision(retry=False)
        if attempt >= self.tries:
            return RetryDecision(retry=False)
        wait = self.wait_for(attempt)
        if self.max_elapsed_time is not None and elapsed + wait > self.max_elapsed_time:
            return RetryDecision(retry=False)
        return RetryDecision(retry=True, wait_for=wait)
