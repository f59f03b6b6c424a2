"""Exponential backoff with cap and uniform jitter."""

from __future__ import annotations

import random
from dataclasses import dataclass

from wallgen.services.errors import ClassifiedError


@dataclass(frozen=True)
class BackoffPolicy:
    """Delay schedule for retry attempts, in seconds."""

    min_delay: float = 10.0
    growth_factor: float = 1.5
    max_delay: float = 90.0
    jitter_max: float = 5.0

    def base_delay(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return min(self.min_delay * self.growth_factor ** (attempt - 1), self.max_delay)

    def next_delay(self, attempt: int, rng: random.Random | None = None) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        base = self.base_delay(attempt)
        jitter = (rng or random).uniform(0, self.jitter_max)
        return base + jitter


@dataclass
class RetryState:
    """Per-invocation retry bookkeeping; never shared between lanes."""

    attempt_count: int = 0
    last_error: ClassifiedError | None = None
    next_delay: float = 0.0

    def record(self, error: ClassifiedError, delay: float) -> None:
        self.last_error = error
        self.next_delay = delay
