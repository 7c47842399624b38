"""
Domain layer - Pure availability logic without external dependencies.
"""

from .booking_window import within_booking_window
from .business_hours import resolve_shop_hours
from .conflicts import is_eligible
from .exceptions import ConfigurationError, DataSourceError, PreconditionError, SlotEngineError
from .models import (
    ANY_STAFF,
    AnyStaff,
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
    bundle_duration,
)
from .slot_generator import SlotEngine, generate_slots
from .staff_hours import group_rules_by_staff, resolve_roster_hours, resolve_staff_hours

__all__ = [
    "ANY_STAFF",
    "AnyStaff",
    "BlackoutPeriod",
    "BusinessConfig",
    "ConfigurationError",
    "DataSourceError",
    "DayHours",
    "ExistingAppointment",
    "PreconditionError",
    "RequestedStaff",
    "Slot",
    "SlotEngine",
    "SlotEngineError",
    "SpecificStaff",
    "StaffMember",
    "TimeRange",
    "WeeklyHoursRule",
    "bundle_duration",
    "generate_slots",
    "group_rules_by_staff",
    "is_eligible",
    "resolve_roster_hours",
    "resolve_shop_hours",
    "resolve_staff_hours",
    "within_booking_window",
]
