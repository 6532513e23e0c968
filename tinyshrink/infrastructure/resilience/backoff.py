"""Backoff delay computation for retries.

`delay_for(n)` is a pure function of the attempt number. Jitter, when
enabled, draws from an injectable `random.Random` so sequences can be
reproduced in tests.
"""

import random
from typing import Iterator, Optional

from tinyshrink.infrastructure.config.settings import RetryConfig

JITTER_NONE = "none"
JITTER_FULL = "full"


class BackoffPolicy:
    """Exponential backoff: min(base_delay * factor^(n-1), max_delay)."""

    def __init__(
        self,
        base_delay: float = 0.1,
        max_delay: float = 10.0,
        factor: float = 2.0,
        jitter: str = JITTER_NONE,
        rng: Optional[random.Random] = None,
    ):
        if base_delay < 0 or max_delay < 0:
            raise ValueError("Delays must be non-negative.")
        if factor < 1.0:
            raise ValueError("Backoff factor must be >= 1.0.")
        if jitter not in (JITTER_NONE, JITTER_FULL):
            raise ValueError(f"Unknown jitter strategy: {jitter}")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.factor = factor
        self.jitter = jitter
        self._rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: RetryConfig, rng: Optional[random.Random] = None) -> "BackoffPolicy":
        return cls(
            base_delay=config.base_delay,
            max_delay=config.max_delay,
            factor=config.backoff_factor,
            jitter=config.jitter,
            rng=rng,
        )

    def delay_for(self, attempt: int) -> float:
        """Pre-jitter delay in seconds after the given 1-indexed attempt."""
        if attempt < 1:
            raise ValueError("Attempt numbers start at 1.")
        # Stop once capped; factor**(attempt-1) overflows for large attempts
        delay = self.base_delay
        for _ in range(attempt - 1):
            delay *= self.factor
            if delay >= self.max_delay:
                return self.max_delay
        return min(delay, self.max_delay)

    def compute(self, attempt: int) -> float:
        """Delay to actually sleep, with jitter applied if configured."""
        delay = self.delay_for(attempt)
        if self.jitter == JITTER_FULL:
            return self._rng.uniform(0.0, delay)
        return delay

    def delays(self, max_attempts: int) -> Iterator[float]:
        """Yields the delays slept between `max_attempts` attempts."""
        for attempt in range(1, max_attempts):
            yield self.compute(attempt)

    def __repr__(self) -> str:
        return (
            f"BackoffPolicy(base_delay={self.base_delay}, max_delay={self.max_delay}, "
            f"factor={self.factor}, jitter={self.jitter!r})"
        )
