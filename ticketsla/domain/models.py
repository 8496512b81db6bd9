"""
Domain models for the business-hours calendar.
"""

from dataclasses import dataclass, field
from datetime import time
from typing import List

from pendulum import DateTime


@dataclass(frozen=True)
class WorkWindow:
    """
    The working time of one day, as the half-open span [opens, closes).
    """
    opens: DateTime
    closes: DateTime

    def __post_init__(self):
        if self.closes <= self.opens:
            raise ValueError(f"Window closing at {self.closes} does not follow its opening at {self.opens}")

    def minutes(self) -> float:
        return (self.closes.timestamp() - self.opens.timestamp()) / 60

    def overlap_minutes(self, start: DateTime, end: DateTime) -> float:
        """Minutes of the span [start, end] that fall inside this window."""
        effective_start = max(start, self.opens)
        effective_end = min(end, self.closes)

        if effective_end <= effective_start:
            return 0.0
        return (effective_end.timestamp() - effective_start.timestamp()) / 60


@dataclass
class WorkingHours:
    """
    The business calendar: a daily working window on non-excluded weekdays,
    evaluated in an explicit business timezone.
    """
    start_time: time = time(8, 0)
    end_time: time = time(20, 0)
    exclude_weekdays: List[int] = field(default_factory=lambda: [5, 6])  # 0=Monday, 6=Sunday
    timezone: str = "Europe/Rome"

    def is_working_day(self, dt: DateTime) -> bool:
        """Check if a given datetime falls on a working day."""
        return dt.day_of_week not in self.exclude_weekdays

    def is_within_window(self, dt: DateTime) -> bool:
        """Check if the time of day lies in [start_time, end_time)."""
        return self.start_time <= dt.time() < self.end_time

    def _at(self, date: DateTime, moment: time) -> DateTime:
        return date.set(hour=moment.hour, minute=moment.minute, second=0, microsecond=0)

    def window_start_for_day(self, date: DateTime) -> DateTime:
        """Return the opening instant of the working window on the given day."""
        return self._at(date, self.start_time)

    def window_for_day(self, date: DateTime) -> WorkWindow | None:
        """The working window of the given day, None on excluded days."""
        if not self.is_working_day(date):
            return None
        return WorkWindow(opens=self._at(date, self.start_time), closes=self._at(date, self.end_time))
