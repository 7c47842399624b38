"""
Time-window helpers shared by the resolvers and the slot generator.

Time-of-day values are plain integers (minutes since midnight). Only
``instant_at`` and ``day_window`` turn them into zone-aware instants, always
in the business timezone.
"""

import re
from datetime import date, datetime

import pendulum
from pendulum import Date, DateTime

from .exceptions import ConfigurationError
from .models import MINUTES_PER_DAY, TimeRange

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_time_to_minutes(value: str) -> int:
    """
    Parse ``HH:MM`` or ``HH:MM:SS`` into minutes since midnight.

    Seconds are accepted because the database renders ``time`` columns with
    them, but they must be zero.

    Raises:
        ConfigurationError: If the string is not a valid time of day
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ConfigurationError(f"Invalid time of day: {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)

    if hour > 23 or minute > 59 or second != 0:
        raise ConfigurationError(f"Invalid time of day: {value!r}")

    return hour * 60 + minute


def format_minutes(minutes: int) -> str:
    """Minutes since midnight -> ``HH:MM``."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes must be within one day, got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(day: date) -> int:
    """Weekday number with 0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7


def to_instant(value: datetime) -> DateTime:
    """
    Coerce an aware datetime into a pendulum DateTime.

    Raises:
        ValueError: If the datetime carries no timezone
    """
    if value.tzinfo is None:
        raise ValueError(f"Datetime must be timezone-aware, got {value}")
    if isinstance(value, DateTime):
        return value
    return pendulum.instance(value)


def local_date(instant: datetime, timezone: str) -> Date:
    """Calendar date of ``instant`` in ``timezone``."""
    return to_instant(instant).in_timezone(timezone).date()


def instant_at(day: date, minutes: int, timezone: str) -> DateTime:
    """Wall-clock time ``minutes`` after midnight of ``day`` in ``timezone``."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        minutes // 60,
        minutes % 60,
        tz=timezone,
    )


def day_window(day: date, timezone: str) -> TimeRange:
    """Midnight-to-midnight range of ``day`` in ``timezone``."""
    start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)
    return TimeRange(start=start, end=start.add(days=1))


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """True if [start, end) and [other_start, other_end) overlap."""
    return start < other_end and end > other_start
