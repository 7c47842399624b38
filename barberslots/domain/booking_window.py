"""
Forward-looking booking horizon check.
"""

from datetime import date, datetime

from .time_windows import local_date


def within_booking_window(
    day: date,
    booking_window_days: int,
    now: datetime,
    timezone: str,
) -> bool:
    """
    True if ``day`` is at most ``booking_window_days`` after today.

    "Today" is the date of ``now`` in the business timezone; the last day of
    the window is inclusive.
    """
    today = local_date(now, timezone)
    return day <= today.add(days=booking_window_days)
