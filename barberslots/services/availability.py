"""
Application service for answering availability queries.

The service fetches everything a query needs from a shop data source and
delegates the actual slot calculation to the domain-level ``SlotEngine``.
This keeps the CLI thin and improves testability by allowing the data
dependency to be stubbed via a simple protocol.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence

import pendulum

from ..domain.booking_window import within_booking_window
from ..domain.exceptions import PreconditionError
from ..domain.models import (
    ANY_STAFF,
    BlackoutPeriod,
    BusinessConfig,
    ExistingAppointment,
    RequestedStaff,
    Slot,
    SpecificStaff,
    StaffMember,
    TimeRange,
    WeeklyHoursRule,
)
from ..domain.slot_generator import SlotEngine
from ..domain.staff_hours import group_rules_by_staff
from ..domain.time_windows import day_window

logger = logging.getLogger(__name__)


class ShopDataSource(Protocol):
    """Protocol describing the read-only shop data needed by the service."""

    async def get_business_config(self) -> BusinessConfig:
        """Return the business's booking settings."""

    async def get_shop_hours(self) -> List[WeeklyHoursRule]:
        """Return the shop's weekly hours rules."""

    async def get_staff_hours(self) -> List[WeeklyHoursRule]:
        """Return all staff hours rules, ``owner_id`` set to the staff id."""

    async def get_active_staff(self) -> List[StaffMember]:
        """Return the active staff roster in display order."""

    async def get_blackouts(self, window: TimeRange) -> List[BlackoutPeriod]:
        """Return blackout periods overlapping ``window``."""

    async def get_appointments(
        self,
        window: TimeRange,
        staff_id: Optional[str] = None,
    ) -> List[ExistingAppointment]:
        """Return active appointments overlapping ``window``."""


class AvailabilityService:
    """
    Orchestrates shop data retrieval and slot calculation.

    Used by both the booking flow and the reschedule flow; the latter passes
    the appointment being moved so it does not conflict with itself.
    """

    def __init__(self, data_source: ShopDataSource) -> None:
        self._data_source = data_source

    async def find_slots(
        self,
        *,
        day: date,
        total_duration_minutes: int,
        requested_staff: RequestedStaff = ANY_STAFF,
        now: Optional[datetime] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Slot]:
        """
        Fetch the day's data and compute the bookable slots.
        """
        config = await self._data_source.get_business_config()
        if config is None:
            raise PreconditionError("Business configuration could not be loaded.")

        if now is None:
            now = pendulum.now(config.timezone)
        elif now.tzinfo is None:
            raise PreconditionError(f"now must be timezone-aware, got {now!r}")

        if not within_booking_window(day, config.booking_window_days, now, config.timezone):
            logger.debug("%s is outside the %d-day booking window", day, config.booking_window_days)
            return []

        window = day_window(day, config.timezone)
        staff_filter = requested_staff.staff_id if isinstance(requested_staff, SpecificStaff) else None

        shop_rules, staff_rules, staff, blackouts, appointments = await asyncio.gather(
            self._data_source.get_shop_hours(),
            self._data_source.get_staff_hours(),
            self._data_source.get_active_staff(),
            self._data_source.get_blackouts(window),
            # Bookings just outside the day still reach into it through the buffer
            self._data_source.get_appointments(window.expand(config.buffer_minutes), staff_filter),
        )

        self._ensure_loaded(
            shop_rules=shop_rules,
            staff_rules=staff_rules,
            staff=staff,
            blackouts=blackouts,
            appointments=appointments,
        )

        if exclude_appointment_id is not None:
            appointments = self._without_appointment(appointments, exclude_appointment_id)

        engine = SlotEngine(config)
        slots = engine.find_available_slots(
            day=day,
            total_duration_minutes=total_duration_minutes,
            shop_rules=shop_rules,
            staff_rules=group_rules_by_staff(staff_rules),
            staff=staff,
            blackouts=blackouts,
            appointments=appointments,
            now=now,
            requested_staff=requested_staff,
        )

        logger.info(
            "Found %d slot(s) for %s on %s (%d min)",
            len(slots),
            config.business_id,
            day,
            total_duration_minutes,
        )
        return slots

    @staticmethod
    def _ensure_loaded(**inputs) -> None:
        """
        Refuse to compute with partially loaded data.

        An empty list is a valid answer from the data source; ``None`` means
        the fetch did not produce a result.
        """
        missing = sorted(name for name, value in inputs.items() if value is None)
        if missing:
            raise PreconditionError(f"Shop data not loaded: {', '.join(missing)}")

    @staticmethod
    def _without_appointment(
        appointments: Sequence[ExistingAppointment],
        appointment_id: str,
    ) -> List[ExistingAppointment]:
        return [
            appointment for appointment in appointments
            if appointment.appointment_id != appointment_id
        ]
