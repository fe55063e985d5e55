"""
Clock -- injectable time source.

Services take a Clock in their constructor instead of calling
``datetime.now()``.  Business dates (the due window, cleared dates, refund
dates) come from ``Clock.today()`` so the scheduler and tests can pin them.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Pinned clock for tests and replays; only moves when told to."""

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int = 1) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now

    def advance_days(self, days: int) -> datetime:
        return self.advance(days * 86400)
