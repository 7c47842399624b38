"""
Core business logic for calculating bookable slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O, no clock).
"""

from datetime import date, datetime
from typing import List, Mapping, Optional, Sequence

from pendulum import DateTime

from .booking_window import within_booking_window
from .business_hours import resolve_shop_hours
from .conflicts import is_eligible
from .exceptions import PreconditionError
from .models import (
    ANY_STAFF,
    BlackoutPeriod,
    BusinessConfig,
    DayHours,
    ExistingAppointment,
    RequestedStaff,
    Slot,
    SpecificStaff,
    StaffMember,
    TimeRange,
    WeeklyHoursRule,
)
from .staff_hours import resolve_roster_hours
from .time_windows import format_minutes, instant_at, to_instant


def generate_slots(
    config: BusinessConfig,
    shop_hours: Optional[DayHours],
    staff_hours_by_id: Mapping[str, DayHours],
    total_duration_minutes: int,
    blackouts: Sequence[BlackoutPeriod],
    appointments: Sequence[ExistingAppointment],
    day: date,
    now: datetime,
) -> List[Slot]:
    """
    Walk the shop's day and collect slots with at least one eligible staff member.

    Args:
        config: Booking settings of the business
        shop_hours: Resolved shop bounds, None when closed
        staff_hours_by_id: Working hours of the staff under consideration,
            in the order eligible ids should be reported
        total_duration_minutes: Duration of the requested service bundle
        blackouts: Blackout periods overlapping the day
        appointments: Appointments overlapping the day
        day: Requested date in the business timezone
        now: Current instant

    Returns:
        Slots in ascending time order
    """
    if shop_hours is None:
        return []

    buffer = config.buffer_minutes
    if total_duration_minutes + buffer > shop_hours.span_minutes():
        return []

    if not staff_hours_by_id:
        return []

    earliest_start = to_instant(now).add(hours=config.min_advance_hours)
    slots: List[Slot] = []

    current = shop_hours.open_minutes
    while current + total_duration_minutes + buffer <= shop_hours.close_minutes:
        end_minutes = current + total_duration_minutes
        slot_start = instant_at(day, current, config.timezone)
        slot_end = instant_at(day, end_minutes, config.timezone)

        if slot_start < earliest_start:
            current += config.slot_interval_minutes
            continue

        eligible_staff_ids: List[str] = []

        for staff_id, hours in staff_hours_by_id.items():
            if not hours.contains(current, end_minutes):
                continue

            if is_eligible(staff_id, slot_start, slot_end, blackouts, appointments, buffer):
                eligible_staff_ids.append(staff_id)

        if eligible_staff_ids:
            slots.append(
                Slot(
                    time=format_minutes(current),
                    eligible_staff_ids=tuple(eligible_staff_ids),
                    time_range=TimeRange(start=slot_start, end=slot_end),
                )
            )

        current += config.slot_interval_minutes

    return slots


def select_staff(staff: Sequence[StaffMember], requested: RequestedStaff) -> List[StaffMember]:
    """Resolve the requested staff choice into the active members to check."""
    active = [member for member in staff if member.is_active]

    if isinstance(requested, SpecificStaff):
        return [member for member in active if member.staff_id == requested.staff_id]

    return active


class SlotEngine:
    """
    Answers "which slots can be booked on this day, and with whom?".

    Algorithm:
    1. Reject dates beyond the booking window
    2. Resolve the shop's hours for the day
    3. Narrow the roster to the requested staff
    4. Resolve each staff member's own hours
    5. Generate slots and test every staff member against blackouts/bookings
    """

    def __init__(self, config: BusinessConfig):
        self.config = config

    def find_available_slots(
        self,
        *,
        day: date,
        total_duration_minutes: int,
        shop_rules: Sequence[WeeklyHoursRule],
        staff_rules: Mapping[str, Sequence[WeeklyHoursRule]],
        staff: Sequence[StaffMember],
        blackouts: Sequence[BlackoutPeriod],
        appointments: Sequence[ExistingAppointment],
        now: datetime,
        requested_staff: RequestedStaff = ANY_STAFF,
    ) -> List[Slot]:
        """
        Compute the bookable slots for ``day``.

        Raises:
            PreconditionError: If an input is missing or malformed
            ConfigurationError: If the business hours are misconfigured
        """
        now = self._check_preconditions(
            day=day,
            total_duration_minutes=total_duration_minutes,
            inputs={
                "shop_rules": shop_rules,
                "staff_rules": staff_rules,
                "staff": staff,
                "blackouts": blackouts,
                "appointments": appointments,
            },
            now=now,
        )

        # Step 1: Booking window, before touching any other data
        if not within_booking_window(day, self.config.booking_window_days, now, self.config.timezone):
            return []

        # Step 2: Shop hours
        shop_hours = resolve_shop_hours(shop_rules, day)
        if shop_hours is None:
            return []

        # Step 3: Staff under consideration
        candidates = select_staff(staff, requested_staff)
        if not candidates:
            return []

        # Step 4: Their hours for the day
        staff_hours_by_id = resolve_roster_hours(candidates, staff_rules, shop_hours, day)

        # Step 5: Slots
        return generate_slots(
            config=self.config,
            shop_hours=shop_hours,
            staff_hours_by_id=staff_hours_by_id,
            total_duration_minutes=total_duration_minutes,
            blackouts=blackouts,
            appointments=appointments,
            day=day,
            now=now,
        )

    @staticmethod
    def _check_preconditions(*, day, total_duration_minutes, inputs, now) -> DateTime:
        missing = [name for name, value in inputs.items() if value is None]
        if missing:
            raise PreconditionError(f"Missing required inputs: {', '.join(missing)}")

        if isinstance(day, datetime) or not isinstance(day, date):
            raise PreconditionError(f"day must be a date, got {day!r}")

        if not isinstance(total_duration_minutes, int) or total_duration_minutes <= 0:
            raise PreconditionError(
                f"total_duration_minutes must be a positive integer, got {total_duration_minutes!r}"
            )

        if now is None:
            raise PreconditionError("Missing required input: now")

        try:
            return to_instant(now)
        except ValueError as exc:
            raise PreconditionError(str(exc)) from exc
