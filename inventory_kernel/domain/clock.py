"""
Injectable time source.

Inventory ``last_updated`` stamps, operation-log timestamps, migration
progress times and lease expiry all come from a ``Clock`` passed in at
construction.  Nothing below the CLI calls ``datetime.now()`` directly.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

EPOCH_FOR_TESTS = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """``now()`` always returns a timezone-aware UTC datetime."""

    @abstractmethod
    def now(self) -> datetime: ...


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Manually driven clock for tests.

    Time stands still between calls to ``advance``, ``tick`` and
    ``set_time``, so two ``now()`` calls in one operation agree.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = self._as_utc(fixed_time or EPOCH_FOR_TESTS)

    @staticmethod
    def _as_utc(value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        return value.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = self._as_utc(time)

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Advance one second and return the new time."""
        self.advance(1)
        return self._current
