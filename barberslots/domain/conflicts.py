"""
Per-staff eligibility of a candidate interval.

The buffer widens existing bookings, never the candidate, so a candidate may
start exactly ``buffer_minutes`` after a booking ends.
"""

from typing import Iterable

from pendulum import DateTime

from .models import BlackoutPeriod, ExistingAppointment
from .time_windows import overlaps


def is_blocked(
    staff_id: str,
    candidate_start: DateTime,
    candidate_end: DateTime,
    blackouts: Iterable[BlackoutPeriod],
) -> bool:
    """Check the candidate against global and staff-specific blackouts."""
    return any(
        overlaps(candidate_start, candidate_end, blackout.start_at, blackout.end_at)
        for blackout in blackouts
        if blackout.applies_to(staff_id)
    )


def has_booking_conflict(
    staff_id: str,
    candidate_start: DateTime,
    candidate_end: DateTime,
    appointments: Iterable[ExistingAppointment],
    buffer_minutes: int = 0,
) -> bool:
    """Check the candidate against the staff member's active bookings."""
    for appointment in appointments:
        if appointment.staff_id != staff_id or not appointment.is_active:
            continue

        reserved = appointment.reserved_range(buffer_minutes)
        if overlaps(candidate_start, candidate_end, reserved.start, reserved.end):
            return True

    return False


def is_eligible(
    staff_id: str,
    candidate_start: DateTime,
    candidate_end: DateTime,
    blackouts: Iterable[BlackoutPeriod],
    appointments: Iterable[ExistingAppointment],
    buffer_minutes: int = 0,
) -> bool:
    """True if ``staff_id`` is free for the whole candidate interval."""
    if is_blocked(staff_id, candidate_start, candidate_end, blackouts):
        return False

    return not has_booking_conflict(
        staff_id,
        candidate_start,
        candidate_end,
        appointments,
        buffer_minutes,
    )
