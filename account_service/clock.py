"""
Clock Module

Injectable time source. Services receive a Clock through their constructor
so registration timestamps and the cancellation window can be tested with a
controlled time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone, timedelta
from typing import Optional


class Clock(ABC):
    """Abstract clock interface"""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time as a timezone-aware datetime"""
        pass


class SystemClock(Clock):
    """Clock backed by the system time (UTC)"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock that returns a set time until moved"""

    def __init__(self, current: Optional[datetime] = None):
        self._current = current or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = current

    def advance(self, delta: timedelta) -> datetime:
        self._current = self._current + delta
        return self._current
