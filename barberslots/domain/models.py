"""
Domain models for availability and slot calculations.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple, Union

import pendulum
from pendulum import DateTime

from .exceptions import ConfigurationError, PreconditionError

# Appointments in these states never block a slot
INACTIVE_APPOINTMENT_STATUSES: FrozenSet[str] = frozenset({"canceled", "no_show"})

MINUTES_PER_DAY = 24 * 60


def _validate_interval(start: DateTime, end: DateTime) -> None:
    """Both ends timezone-aware, start strictly before end."""
    if start.tzinfo is None or end.tzinfo is None:
        raise ValueError(f"Interval {start} - {end} must be timezone-aware")
    if start >= end:
        raise ValueError(f"Start time {start} must be before end time {end}")


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        _validate_interval(self.start, self.end)

    def expand(self, minutes: int) -> "TimeRange":
        """Widen the range by ``minutes`` on both ends."""
        if minutes == 0:
            return self
        return TimeRange(
            start=self.start.subtract(minutes=minutes),
            end=self.end.add(minutes=minutes),
        )

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BusinessConfig:
    """
    Booking settings of one business, as seen by the engine.
    """
    business_id: str
    timezone: str = "UTC"
    slot_interval_minutes: int = 15
    buffer_minutes: int = 0
    booking_window_days: int = 30
    min_advance_hours: int = 0

    def __post_init__(self):
        for name in ("buffer_minutes", "booking_window_days", "min_advance_hours"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")

        if not isinstance(self.slot_interval_minutes, int) or self.slot_interval_minutes <= 0:
            raise ConfigurationError(
                f"slot_interval_minutes must be a positive integer, got {self.slot_interval_minutes!r}"
            )

        try:
            pendulum.timezone(self.timezone)
        except Exception as exc:
            raise ConfigurationError(f"Unknown timezone: {self.timezone!r}") from exc


@dataclass(frozen=True)
class WeeklyHoursRule:
    """
    Recurring opening hours for one weekday.

    ``day_of_week`` uses 0=Sunday ... 6=Saturday. ``owner_id`` is the staff
    member the rule belongs to; shop rules leave it unset.
    """
    day_of_week: int
    open_time: str
    close_time: str
    is_enabled: bool = True
    owner_id: Optional[str] = None

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ConfigurationError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")


@dataclass(frozen=True)
class DayHours:
    """Resolved open/close bounds for one day, in minutes since midnight."""
    open_minutes: int
    close_minutes: int

    def __post_init__(self):
        if not 0 <= self.open_minutes < self.close_minutes <= MINUTES_PER_DAY:
            raise ConfigurationError(
                f"Opening time must be before closing time within one day, "
                f"got {self.open_minutes}-{self.close_minutes} minutes"
            )

    def span_minutes(self) -> int:
        return self.close_minutes - self.open_minutes

    def contains(self, start_minutes: int, end_minutes: int) -> bool:
        """Check whether [start, end] lies within these hours."""
        return start_minutes >= self.open_minutes and end_minutes <= self.close_minutes


@dataclass(frozen=True)
class StaffMember:
    staff_id: str
    display_name: str = ""
    is_active: bool = True

    def label(self) -> str:
        return self.display_name or self.staff_id


@dataclass(frozen=True)
class BlackoutPeriod:
    """
    Ad-hoc period during which nobody (``staff_id=None``) or a single staff
    member can be booked.
    """
    start_at: DateTime
    end_at: DateTime
    staff_id: Optional[str] = None

    def __post_init__(self):
        _validate_interval(self.start_at, self.end_at)

    def applies_to(self, staff_id: str) -> bool:
        return self.staff_id is None or self.staff_id == staff_id


@dataclass(frozen=True)
class ExistingAppointment:
    start_at: DateTime
    end_at: DateTime
    staff_id: str
    status: str = "confirmed"
    appointment_id: Optional[str] = None

    def __post_init__(self):
        _validate_interval(self.start_at, self.end_at)

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_APPOINTMENT_STATUSES

    def reserved_range(self, buffer_minutes: int) -> TimeRange:
        """The interval this booking blocks, buffer included on both ends."""
        return TimeRange(start=self.start_at, end=self.end_at).expand(buffer_minutes)


@dataclass(frozen=True)
class AnyStaff:
    """Let the engine offer every active staff member."""


@dataclass(frozen=True)
class SpecificStaff:
    """Restrict the query to a single staff member."""
    staff_id: str


RequestedStaff = Union[AnyStaff, SpecificStaff]

ANY_STAFF = AnyStaff()


@dataclass(frozen=True)
class Slot:
    """
    Represents a bookable start time and the staff who can take it.
    """
    time: str
    eligible_staff_ids: Tuple[str, ...]
    time_range: Optional[TimeRange] = field(default=None, compare=False)

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, DD.MM.YYYY | HH:MM - HH:MM
        """
        if self.time_range is None:
            return self.time

        start = self.time_range.start
        end = self.time_range.end
        return f"{start.format('dddd, DD.MM.YYYY')} | {start.format('HH:mm')} - {end.format('HH:mm')}"


def bundle_duration(durations) -> int:
    """
    Total duration of a service bundle in minutes.

    Raises:
        PreconditionError: If the bundle is empty or any duration is not positive
    """
    total = 0
    count = 0
    for duration in durations:
        if duration <= 0:
            raise PreconditionError(f"Service durations must be positive, got {duration}")
        total += duration
        count += 1

    if count == 0:
        raise PreconditionError("A service bundle needs at least one service.")

    return total
