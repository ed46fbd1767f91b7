"""Backoff policy for retried API calls.

Exponential growth from an initial delay, capped at a maximum, with
symmetric +/-25% jitter so concurrent callers do not retry in lockstep.
A server-supplied Retry-After always wins over the computed delay.
"""

import random
from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY_MS = 1000
DEFAULT_MAX_DELAY_MS = 30000
DEFAULT_EXPONENTIAL_BASE = 2.0
JITTER_FRACTION = 0.25

@dataclass(frozen=True)
class RetryConfig:
    """Retry budget and backoff shape. Immutable, one per client."""
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS
    exponential_base: float = DEFAULT_EXPONENTIAL_BASE

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    @classmethod
    def new(cls, max_retries: int) -> "RetryConfig":
        return cls(max_retries=max_retries)

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        return cls(max_retries=0)

    def with_max_retries(self, max_retries: int) -> "RetryConfig":
        return replace(self, max_retries=max_retries)

    def base_delay_ms(self, attempt: int) -> float:
        """Un-jittered delay for a 0-indexed attempt, capped at max_delay_ms."""
        return min(self.initial_delay_ms * self.exponential_base ** attempt, float(self.max_delay_ms))

    def delay_for_attempt(
        self,
        attempt: int,
        retry_after: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> float:
        """Computes how long to wait before the next attempt.

        Args:
            attempt: 0-indexed number of the attempt that just failed.
            retry_after: Server-specified delay in seconds, if any.
            rng: Random source for the jitter; pass a seeded instance for
                reproducible delays.

        Returns:
            The delay in seconds.
        """
        if retry_after is not None:
            return float(retry_after)

        base_ms = self.base_delay_ms(attempt)
        jitter_range = base_ms * JITTER_FRACTION
        jitter = (rng or random).uniform(-jitter_range, jitter_range)
        return max(0.0, base_ms + jitter) / 1000.0
