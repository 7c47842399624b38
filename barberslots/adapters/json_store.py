"""
File-backed shop data source.

Shop settings, weekly hours and the staff roster come from the YAML
``AppConfig``; blackouts and appointments come from a JSON calendar snapshot:

    {
        "blackouts": [
            {"start": "2024-11-25T12:00:00+01:00", "end": "...", "staff_id": null}
        ],
        "appointments": [
            {"id": "a-1", "start": "...", "end": "...", "staff_id": "ana", "status": "confirmed"}
        ]
    }

Timestamps without an offset are read in the business timezone.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..config import AppConfig
from ..domain.exceptions import DataSourceError
from ..domain.models import (
    BlackoutPeriod,
    BusinessConfig,
    ExistingAppointment,
    StaffMember,
    TimeRange,
    WeeklyHoursRule,
)

logger = logging.getLogger(__name__)


class JsonShopStore:
    """
    Serves shop data from the YAML config and an optional JSON calendar file.

    Implements ``ShopDataSource``.
    """

    def __init__(self, config: AppConfig, calendar_file: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            config: Loaded application configuration
            calendar_file: JSON file with blackouts and appointments. When
                omitted the calendar is empty.

        Raises:
            DataSourceError: If the calendar file cannot be read or parsed
        """
        self.config = config
        self.business = config.to_business_config()
        self.calendar_file = calendar_file
        self.blackouts: List[BlackoutPeriod] = []
        self.appointments: List[ExistingAppointment] = []
        self._load_calendar_data()

    def _load_calendar_data(self) -> None:
        """Load blackouts and appointments from the JSON file."""
        if self.calendar_file is None:
            return

        if not self.calendar_file.exists():
            raise DataSourceError(f"Calendar file not found: {self.calendar_file}")

        try:
            with open(self.calendar_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise DataSourceError(f"Invalid JSON in {self.calendar_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataSourceError("Calendar file must contain an object at the root level.")

        self.blackouts = [self._parse_blackout(item) for item in data.get("blackouts", [])]
        self.appointments = [self._parse_appointment(item) for item in data.get("appointments", [])]

        logger.debug(
            "Loaded %d blackout(s) and %d appointment(s) from %s",
            len(self.blackouts),
            len(self.appointments),
            self.calendar_file,
        )

    def _parse_blackout(self, item: Dict[str, Any]) -> BlackoutPeriod:
        try:
            return BlackoutPeriod(
                start_at=self._parse_datetime(item["start"]),
                end_at=self._parse_datetime(item["end"]),
                staff_id=item.get("staff_id"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DataSourceError(f"Could not parse blackout {item!r}: {exc}") from exc

    def _parse_appointment(self, item: Dict[str, Any]) -> ExistingAppointment:
        try:
            return ExistingAppointment(
                start_at=self._parse_datetime(item["start"]),
                end_at=self._parse_datetime(item["end"]),
                staff_id=item["staff_id"],
                status=item.get("status", "confirmed"),
                appointment_id=item.get("id"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DataSourceError(f"Could not parse appointment {item!r}: {exc}") from exc

    def _parse_datetime(self, value: str) -> DateTime:
        """
        Parse an ISO 8601 string into a DateTime in the business timezone.
        """
        dt = pendulum.parse(value, tz=self.business.timezone)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.business.timezone)

        raise ValueError(f"Could not parse datetime: {value}")

    async def get_business_config(self) -> BusinessConfig:
        return self.business

    async def get_shop_hours(self) -> List[WeeklyHoursRule]:
        return self.config.shop_rules()

    async def get_staff_hours(self) -> List[WeeklyHoursRule]:
        return self.config.staff_rules()

    async def get_active_staff(self) -> List[StaffMember]:
        return [member for member in self.config.staff_members() if member.is_active]

    async def get_blackouts(self, window: TimeRange) -> List[BlackoutPeriod]:
        return [
            blackout for blackout in self.blackouts
            if blackout.start_at < window.end and blackout.end_at > window.start
        ]

    async def get_appointments(
        self,
        window: TimeRange,
        staff_id: Optional[str] = None,
    ) -> List[ExistingAppointment]:
        return [
            appointment for appointment in self.appointments
            if appointment.is_active
            and (staff_id is None or appointment.staff_id == staff_id)
            and appointment.start_at < window.end
            and appointment.end_at > window.start
        ]
