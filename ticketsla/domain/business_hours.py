"""
Working-time arithmetic for SLA reporting.

Elapsed time between two instants only counts while the business calendar
is open: inside the daily working window on working days. Everything here is
pure and never raises on bad input; anything that cannot be computed comes
back as ``None`` (or ``False`` for the out-of-hours predicate).
"""

import logging
import math
from datetime import datetime
from typing import Union

import pendulum
from pendulum import Date, DateTime

from .models import WorkingHours

logger = logging.getLogger(__name__)

TimestampInput = Union[str, datetime, None]

# Roughly ten years. Longer spans come from corrupted timestamps.
MAX_SPAN_DAYS = 3660


def parse_timestamp(value: TimestampInput, timezone: str) -> DateTime | None:
    """
    Parse an ISO 8601 string (or datetime) into the business timezone.

    Naive values are interpreted in ``timezone``; values carrying an offset
    are converted to it. Returns None for missing or unparseable input.
    """
    if isinstance(value, datetime):
        try:
            return pendulum.instance(value, tz=timezone).in_timezone(timezone)
        except (ValueError, OverflowError):
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    # pendulum resolves "now" to the current clock
    if not text or text.lower() == "now":
        return None

    # Instants near year 1 or 9999 overflow when shifted into the timezone
    try:
        parsed = pendulum.parse(text, tz=timezone, exact=True)

        if isinstance(parsed, DateTime):
            return parsed.in_timezone(timezone)

        # Date-only strings mean midnight of that day
        if isinstance(parsed, Date):
            return pendulum.datetime(parsed.year, parsed.month, parsed.day, tz=timezone)
    except (ValueError, TypeError, OverflowError):
        return None

    return None


def format_duration(minutes: float) -> str:
    """
    Format working minutes as ``"{h}h {m}m"``, or ``"{m}m"`` under an hour.

    The total is rounded (half up) before splitting into hours and minutes,
    so the minutes part is always in 0..59.
    """
    if minutes < 1:
        return "0m"

    total = int(math.floor(minutes + 0.5))
    hours, remainder = divmod(total, 60)

    if hours > 0:
        return f"{hours}h {remainder}m"
    return f"{remainder}m"


class BusinessHoursCalculator:
    """
    Computes elapsed working time and out-of-hours flags against a
    ``WorkingHours`` calendar.

    Algorithm for the elapsed time:
    1. Reject missing, unparseable or non-positive intervals
    2. Clamp the start forward to the next instant inside a working window
    3. Walk day by day, adding the overlap of each day's window with the interval
    """

    def __init__(self, working_hours: WorkingHours):
        self.working_hours = working_hours

    def parse(self, value: TimestampInput) -> DateTime | None:
        """Parse a timestamp in this calendar's timezone."""
        return parse_timestamp(value, self.working_hours.timezone)

    def is_out_of_hours(self, timestamp: TimestampInput) -> bool:
        """
        Check whether a timestamp falls on an excluded day or outside the
        daily working window.

        Missing or unparseable timestamps are never flagged.
        """
        dt = self.parse(timestamp)
        if dt is None:
            return False

        if not self.working_hours.is_working_day(dt):
            return True

        return not self.working_hours.is_within_window(dt)

    def clamp_to_working_time(self, dt: DateTime) -> DateTime:
        """
        Move an instant forward to the nearest instant inside a working window.

        Instants already inside a window are returned unchanged.
        """
        hours = self.working_hours

        if not hours.is_working_day(dt) or dt.time() >= hours.end_time:
            current = hours.window_start_for_day(dt.add(days=1))
            while not hours.is_working_day(current):
                current = current.add(days=1)
            return current

        if dt.time() < hours.start_time:
            return hours.window_start_for_day(dt)

        return dt

    def working_minutes(self, start: TimestampInput, end: TimestampInput) -> float | None:
        """
        Calculate the working minutes between two timestamps.

        Returns:
            Total minutes inside working windows, or None when the interval is
            missing, unparseable, non-positive, entirely outside working time
            or implausibly long.
        """
        start_dt = self.parse(start)
        end_dt = self.parse(end)

        if start_dt is None or end_dt is None or start_dt >= end_dt:
            return None

        if end_dt.timestamp() - start_dt.timestamp() > MAX_SPAN_DAYS * 86400:
            logger.warning(
                "Ignoring interval longer than %d days: %s -> %s",
                MAX_SPAN_DAYS, start_dt, end_dt
            )
            return None

        try:
            return self._accumulate(start_dt, end_dt)
        except OverflowError:
            logger.warning("Interval runs past the supported date range: %s -> %s", start_dt, end_dt)
            return None

    def _accumulate(self, start_dt: DateTime, end_dt: DateTime) -> float | None:
        current = self.clamp_to_working_time(start_dt)
        if current >= end_dt:
            return None

        total = 0.0

        while current < end_dt:
            window = self.working_hours.window_for_day(current)
            if window:
                total += window.overlap_minutes(current, end_dt)

            if current.date() == end_dt.date():
                break
            current = current.start_of("day").add(days=1)

        return total

    def compute_working_duration(self, start: TimestampInput, end: TimestampInput) -> str | None:
        """
        Calculate the formatted working time between two timestamps.

        Returns:
            ``"{h}h {m}m"``, ``"{m}m"`` or ``"0m"``; None if not computable
        """
        minutes = self.working_minutes(start, end)
        if minutes is None:
            return None
        return format_duration(minutes)


DEFAULT_CALCULATOR = BusinessHoursCalculator(WorkingHours())


def is_out_of_hours(timestamp: TimestampInput) -> bool:
    """Out-of-hours check against the default 08:00-20:00, Monday-Friday calendar."""
    return DEFAULT_CALCULATOR.is_out_of_hours(timestamp)


def compute_working_duration(start: TimestampInput, end: TimestampInput) -> str | None:
    """Formatted working time against the default 08:00-20:00, Monday-Friday calendar."""
    return DEFAULT_CALCULATOR.compute_working_duration(start, end)
