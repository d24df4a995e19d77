"""
RetryPolicy -- bounded retry schedule for transient store conflicts.

Contract:
    A RetryPolicy is a value: the number of attempts and a backoff function
    mapping the 1-based attempt that just failed to the delay in seconds
    before the next one.  The store consults it; nothing here performs I/O
    except the injected ``sleep``.

Invariants enforced:
    - ``max_attempts >= 1`` (one attempt means "no retry").
    - Delays are never negative.
"""

import time
from dataclasses import dataclass, field
from typing import Callable


def exponential_backoff(
    base_delay: float = 0.05,
    max_delay: float = 1.0,
) -> Callable[[int], float]:
    """Return a backoff function doubling from ``base_delay`` up to ``max_delay``.

    Preconditions: base_delay >= 0, max_delay >= base_delay.
    Raises:
        ValueError: If the bounds are inconsistent.
    """
    if base_delay < 0:
        raise ValueError(f"base_delay cannot be negative: {base_delay}")
    if max_delay < base_delay:
        raise ValueError(
            f"max_delay ({max_delay}) must be >= base_delay ({base_delay})"
        )

    def _delay(attempt: int) -> float:
        return min(max_delay, base_delay * (2 ** (attempt - 1)))

    return _delay


def no_backoff(attempt: int) -> float:
    return 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """Explicit, bounded retry schedule."""

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=exponential_backoff)
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(
                f"max_attempts must be at least 1: {self.max_attempts}"
            )

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_attempts=1, backoff=no_backoff)

    def should_retry(self, attempt: int) -> bool:
        """True if another attempt is allowed after ``attempt`` failed."""
        return attempt < self.max_attempts

    def delay_for(self, attempt: int) -> float:
        return max(0.0, self.backoff(attempt))

    def wait(self, attempt: int) -> float:
        """Sleep for the delay following ``attempt`` and return it."""
        delay = self.delay_for(attempt)
        if delay > 0:
            self.sleep(delay)
        return delay
