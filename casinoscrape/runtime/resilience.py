"""
casinoscrape.runtime.resilience

Retry policy for page navigation.
"""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay_range_s: tuple[float, float] = (5.0, 10.0)
    jitter: float = 0.0
    retry_on_status: tuple[int, ...] = (408, 429, 500, 502, 503, 504)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        lo, hi = self.delay_range_s
        if lo < 0 or hi < lo:
            raise ValueError(f"Invalid delay range: {self.delay_range_s}")

    def compute_delay_s(self, attempt: int) -> float:
        """
        Delay to wait after a failed attempt (attempt: 1..N).
        Uniform within the delay range, optionally scaled by +- jitter.
        """
        lo, hi = self.delay_range_s
        delay = random.uniform(lo, hi)
        if self.jitter > 0:
            delay = delay * (1.0 + (random.random() * 2 - 1) * self.jitter)
        return max(0.0, delay)

    def is_retryable_status(self, status: int | None) -> bool:
        return status is not None and status in self.retry_on_status

    def has_attempts_left(self, attempt: int) -> bool:
        return attempt < self.max_attempts
