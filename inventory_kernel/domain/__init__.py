"""Pure kernel domain values: clock and retry policy."""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.retry import (
    RetryPolicy,
    exponential_backoff,
    no_backoff,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "RetryPolicy",
    "SystemClock",
    "exponential_backoff",
    "no_backoff",
]
