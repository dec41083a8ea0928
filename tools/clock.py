"""
Clock Tool
Injectable source of "now" and "today" for the engine
"""

from typing import Optional
from datetime import datetime, date, timedelta


class Clock:
    """Supplies the current time; subclass to control it"""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Local wall-clock time"""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """Clock frozen at a given instant until advanced explicitly"""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **delta) -> datetime:
        """Move forward by timedelta keyword arguments (minutes=5, days=1, ...)"""
        self._now = self._now + timedelta(**delta)
        return self._now


# Singleton instance
system_clock = SystemClock()


def resolve_clock(clock: Optional[Clock]) -> Clock:
    """Return the given clock or the system clock"""
    return clock if clock is not None else system_clock
