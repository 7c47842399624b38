"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import BusinessConfig, StaffMember, WeeklyHoursRule
from .domain.time_windows import parse_time_to_minutes


class HoursRuleConfig(BaseModel):
    """Weekly hours for one weekday (0=Sunday ... 6=Saturday)."""
    day_of_week: int
    open_time: str = "09:00"
    close_time: str = "17:00"
    is_enabled: bool = True

    @field_validator("day_of_week")
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        """Validate weekday is between 0 and 6."""
        if value not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "HoursRuleConfig":
        """Ensure an enabled day opens before it closes."""
        if self.is_enabled:
            if parse_time_to_minutes(self.open_time) >= parse_time_to_minutes(self.close_time):
                raise ValueError(
                    f"open_time must be earlier than close_time on day {self.day_of_week}"
                )
        return self

    def to_rule(self, owner_id: Optional[str] = None) -> WeeklyHoursRule:
        return WeeklyHoursRule(
            day_of_week=self.day_of_week,
            open_time=self.open_time,
            close_time=self.close_time,
            is_enabled=self.is_enabled,
            owner_id=owner_id,
        )


def _validate_unique_days(rules: List[HoursRuleConfig]) -> List[HoursRuleConfig]:
    seen: set[int] = set()
    for rule in rules:
        if rule.day_of_week in seen:
            raise ValueError(f"Duplicate hours for day_of_week {rule.day_of_week}")
        seen.add(rule.day_of_week)
    return rules


class StaffConfig(BaseModel):
    """Staff member configuration."""
    id: str
    name: str = ""
    active: bool = True
    hours: List[HoursRuleConfig] = Field(default_factory=list)  # empty: follows shop hours

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: List[HoursRuleConfig]) -> List[HoursRuleConfig]:
        return _validate_unique_days(value)

    def display_name(self) -> str:
        """Get display name."""
        return self.name or self.id


class BusinessSettings(BaseModel):
    """Booking settings of the business."""
    id: str
    name: str = ""
    timezone: str = "UTC"
    slot_interval_minutes: int = 15
    buffer_minutes: int = 0
    booking_window_days: int = 30
    min_advance_hours: int = 0
    default_duration_minutes: int = 30  # used by the CLI when no --duration is given

    @field_validator("slot_interval_minutes", "default_duration_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure the generation step and default duration are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("buffer_minutes", "booking_window_days", "min_advance_hours")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    business: BusinessSettings
    hours: List[HoursRuleConfig] = Field(default_factory=list)
    staff: List[StaffConfig] = Field(default_factory=list)
    calendar_file: Optional[str] = None  # JSON with blackouts and appointments

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: List[HoursRuleConfig]) -> List[HoursRuleConfig]:
        return _validate_unique_days(value)

    @field_validator("staff")
    @classmethod
    def validate_staff(cls, value: List[StaffConfig]) -> List[StaffConfig]:
        """Ensure staff ids are unique."""
        seen_ids: set[str] = set()
        for member in value:
            if member.id in seen_ids:
                raise ValueError(f"Duplicate staff id detected: {member.id}")
            seen_ids.add(member.id)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def to_business_config(self) -> BusinessConfig:
        settings = self.business
        return BusinessConfig(
            business_id=settings.id,
            timezone=settings.timezone,
            slot_interval_minutes=settings.slot_interval_minutes,
            buffer_minutes=settings.buffer_minutes,
            booking_window_days=settings.booking_window_days,
            min_advance_hours=settings.min_advance_hours,
        )

    def shop_rules(self) -> List[WeeklyHoursRule]:
        return [rule.to_rule() for rule in self.hours]

    def staff_rules(self) -> List[WeeklyHoursRule]:
        """Flat list of all staff rules, owned by their staff id."""
        return [
            rule.to_rule(owner_id=member.id)
            for member in self.staff
            for rule in member.hours
        ]

    def staff_members(self) -> List[StaffMember]:
        return [
            StaffMember(staff_id=member.id, display_name=member.display_name(), is_active=member.active)
            for member in self.staff
        ]

    def staff_names(self) -> Dict[str, str]:
        return {member.id: member.display_name() for member in self.staff}

    def find_staff(self, identifier: str) -> StaffConfig | None:
        """Find a staff member by id or name (case-insensitive)."""
        for member in self.staff:
            if member.id.lower() == identifier.lower() or member.name.lower() == identifier.lower():
                return member
        return None

    def resolve_calendar_path(self, config_path: Path) -> Optional[Path]:
        """Calendar file path, relative paths resolved against the config file."""
        if not self.calendar_file:
            return None
        path = Path(self.calendar_file)
        if not path.is_absolute():
            path = config_path.parent / path
        return path


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
