"""
Tests for slot generation and the SlotEngine query.
"""

from datetime import date, datetime, timezone

import pendulum
import pytest

from barberslots.domain.exceptions import ConfigurationError, PreconditionError
from barberslots.domain.models import (
    ANY_STAFF,
    BlackoutPeriod,
    BusinessConfig,
    DayHours,
    ExistingAppointment,
    SpecificStaff,
    StaffMember,
    WeeklyHoursRule,
)
from barberslots.domain.slot_generator import SlotEngine, generate_slots, select_staff
from barberslots.domain.staff_hours import group_rules_by_staff

TZ = "Europe/Berlin"
MONDAY = date(2024, 11, 25)
SUNDAY = date(2024, 11, 24)
EARLY = pendulum.datetime(2024, 11, 25, 7, 0, tz=TZ)  # before opening


def _at(value: str):
    return pendulum.parse(value, tz=TZ)


def _config(**overrides) -> BusinessConfig:
    settings = dict(
        business_id="barberia",
        timezone=TZ,
        slot_interval_minutes=15,
        buffer_minutes=0,
        booking_window_days=30,
        min_advance_hours=0,
    )
    settings.update(overrides)
    return BusinessConfig(**settings)


def _shop_rules(open_time="09:00", close_time="17:00"):
    """Monday-Friday."""
    return [
        WeeklyHoursRule(day_of_week=day, open_time=open_time, close_time=close_time)
        for day in range(1, 6)
    ]


def _appointment(start: str, end: str, staff_id: str, status: str = "confirmed", appointment_id=None):
    return ExistingAppointment(
        start_at=_at(f"2024-11-25 {start}"),
        end_at=_at(f"2024-11-25 {end}"),
        staff_id=staff_id,
        status=status,
        appointment_id=appointment_id,
    )


def _find(
    config=None,
    *,
    day=MONDAY,
    duration=30,
    shop_rules=None,
    staff_rules=None,
    staff=None,
    blackouts=(),
    appointments=(),
    now=EARLY,
    requested_staff=ANY_STAFF,
):
    engine = SlotEngine(config or _config())
    return engine.find_available_slots(
        day=day,
        total_duration_minutes=duration,
        shop_rules=_shop_rules() if shop_rules is None else shop_rules,
        staff_rules=group_rules_by_staff(staff_rules or []),
        staff=[StaffMember("ana")] if staff is None else staff,
        blackouts=list(blackouts),
        appointments=list(appointments),
        now=now,
        requested_staff=requested_staff,
    )


def _times(slots):
    return [slot.time for slot in slots]


class TestGenerateSlots:
    """Tests for the generate_slots walk."""

    SHOP = DayHours(open_minutes=540, close_minutes=1020)

    def test_full_day_without_bookings(self):
        slots = generate_slots(
            config=_config(),
            shop_hours=self.SHOP,
            staff_hours_by_id={"ana": self.SHOP},
            total_duration_minutes=30,
            blackouts=[],
            appointments=[],
            day=MONDAY,
            now=EARLY,
        )

        assert slots[0].time == "09:00"
        assert slots[-1].time == "16:30"
        assert len(slots) == 31
        assert all(slot.eligible_staff_ids == ("ana",) for slot in slots)

    def test_slot_carries_zone_aware_range(self):
        slots = generate_slots(_config(), self.SHOP, {"ana": self.SHOP}, 45, [], [], MONDAY, EARLY)

        first = slots[0].time_range
        assert first.start == _at("2024-11-25 09:00")
        assert first.end == _at("2024-11-25 09:45")

    def test_last_slot_leaves_room_for_buffer(self):
        slots = generate_slots(
            _config(buffer_minutes=10), self.SHOP, {"ana": self.SHOP}, 30, [], [], MONDAY, EARLY
        )

        assert slots[-1].time == "16:15"  # 16:15 + 30 + 10 <= 17:00

    def test_shop_closed_returns_empty(self):
        assert generate_slots(_config(), None, {"ana": self.SHOP}, 30, [], [], MONDAY, EARLY) == []

    def test_no_staff_working_returns_empty(self):
        assert generate_slots(_config(), self.SHOP, {}, 30, [], [], MONDAY, EARLY) == []

    def test_accepts_stdlib_aware_now(self):
        now = datetime(2024, 11, 25, 6, 0, tzinfo=timezone.utc)

        slots = generate_slots(_config(), self.SHOP, {"ana": self.SHOP}, 30, [], [], MONDAY, now)

        assert slots[0].time == "09:00"


class TestSlotEngine:
    """Behaviour of the full availability query."""

    @pytest.mark.parametrize("day", [SUNDAY, date(2024, 11, 30)])
    def test_shop_closed_returns_empty(self, day):
        """Weekend days have no rule."""
        assert _find(day=day) == []

    def test_shop_disabled_rule_returns_empty(self):
        rules = [WeeklyHoursRule(day_of_week=1, open_time="09:00", close_time="17:00", is_enabled=False)]

        assert _find(shop_rules=rules) == []

    def test_staff_inheritance_matches_shop_hours(self):
        """Staff with no rules behave like a plain shop-hours query."""
        two_staff = _find(staff=[StaffMember("ana"), StaffMember("luis")])

        assert _times(two_staff) == _times(_find())
        assert all(slot.eligible_staff_ids == ("ana", "luis") for slot in two_staff)

    def test_staff_override_exclusivity(self):
        """A custom schedule without Monday keeps the staff member off on an open Monday."""
        staff_rules = [WeeklyHoursRule(day_of_week=2, open_time="09:00", close_time="17:00", owner_id="luis")]

        slots = _find(staff=[StaffMember("luis")], staff_rules=staff_rules)

        assert slots == []

    def test_staff_override_hours_limit_slots(self):
        staff_rules = [WeeklyHoursRule(day_of_week=1, open_time="12:00", close_time="14:00", owner_id="luis")]

        slots = _find(staff=[StaffMember("ana"), StaffMember("luis")], staff_rules=staff_rules)

        with_luis = [slot.time for slot in slots if "luis" in slot.eligible_staff_ids]
        assert with_luis == ["12:00", "12:15", "12:30", "12:45", "13:00", "13:15", "13:30"]

    def test_staff_hours_outside_shop_hours_are_clipped(self):
        staff_rules = [WeeklyHoursRule(day_of_week=1, open_time="07:00", close_time="20:00", owner_id="luis")]

        slots = _find(staff=[StaffMember("luis")], staff_rules=staff_rules)

        assert slots[0].time == "09:00"
        assert slots[-1].time == "16:30"

    def test_shop_closed_beats_staff_rules(self):
        staff_rules = [WeeklyHoursRule(day_of_week=0, open_time="10:00", close_time="14:00", owner_id="luis")]

        assert _find(day=SUNDAY, staff=[StaffMember("luis")], staff_rules=staff_rules) == []

    def test_buffer_boundary(self):
        """Booking 10:00-10:30 with a 10-minute buffer frees the staff member at 10:40."""
        slots = _find(
            _config(slot_interval_minutes=10, buffer_minutes=10),
            appointments=[_appointment("10:00", "10:30", "ana")],
        )
        times = _times(slots)

        assert "10:30" not in times
        assert "10:40" in times
        assert "09:20" in times
        assert "09:30" not in times

    def test_minimum_advance(self):
        now = _at("2024-11-25 09:00")

        slots = _find(_config(slot_interval_minutes=30, min_advance_hours=2), now=now)
        times = _times(slots)

        assert "10:30" not in times
        assert times[0] == "11:00"

    def test_minimum_advance_uses_business_timezone(self):
        """08:00 UTC is 09:00 in Berlin."""
        now = pendulum.datetime(2024, 11, 25, 8, 0, tz="UTC")

        slots = _find(_config(slot_interval_minutes=30, min_advance_hours=2), now=now)

        assert slots[0].time == "11:00"

    def test_past_day_has_no_slots(self):
        now = _at("2024-11-26 08:00")

        assert _find(now=now) == []

    def test_booking_window_short_circuits(self):
        """Out-of-window days never reach hour resolution, even if hours are broken."""
        broken_rules = [WeeklyHoursRule(day_of_week=day, open_time="bad", close_time="bad") for day in range(7)]

        slots = _find(day=date(2024, 12, 26), shop_rules=broken_rules)
        assert slots == []

        with pytest.raises(ConfigurationError):
            _find(shop_rules=broken_rules)

    def test_booking_window_last_day_is_bookable(self):
        assert _find(day=date(2024, 12, 25), now=EARLY) != []  # Wednesday, today + 30

    def test_duration_that_does_not_fit_returns_empty(self):
        rules = _shop_rules("09:00", "10:00")

        assert _find(_config(buffer_minutes=10), shop_rules=rules, duration=55) == []
        assert _times(_find(_config(buffer_minutes=10), shop_rules=rules, duration=50)) == ["09:00"]

    def test_multi_staff_aggregation(self):
        """Staff A busy 10:00-11:00, staff B free: 10:15 lists only B."""
        slots = _find(
            staff=[StaffMember("a"), StaffMember("b")],
            appointments=[_appointment("10:00", "11:00", "a")],
        )
        by_time = {slot.time: slot.eligible_staff_ids for slot in slots}

        assert by_time["10:15"] == ("b",)
        assert by_time["09:00"] == ("a", "b")
        assert by_time["11:00"] == ("a", "b")

    def test_eligible_staff_preserve_roster_order(self):
        slots = _find(staff=[StaffMember("zoe"), StaffMember("ana"), StaffMember("max")])

        assert slots[0].eligible_staff_ids == ("zoe", "ana", "max")

    def test_slot_dropped_when_nobody_is_free(self):
        slots = _find(
            staff=[StaffMember("a"), StaffMember("b")],
            appointments=[_appointment("10:00", "11:00", "a"), _appointment("10:00", "11:00", "b")],
        )

        assert "10:00" not in _times(slots)
        assert "10:30" not in _times(slots)
        assert "11:00" in _times(slots)

    def test_global_blackout_removes_slots(self):
        blackouts = [BlackoutPeriod(start_at=_at("2024-11-25 13:00"), end_at=_at("2024-11-25 14:00"))]

        times = _times(_find(blackouts=blackouts))

        assert "12:30" in times
        assert "12:45" not in times
        assert "13:45" not in times
        assert "14:00" in times

    def test_inactive_staff_are_ignored(self):
        slots = _find(staff=[StaffMember("ana", is_active=False), StaffMember("luis")])

        assert all(slot.eligible_staff_ids == ("luis",) for slot in slots)

    def test_specific_staff_filter(self):
        slots = _find(
            staff=[StaffMember("a"), StaffMember("b")],
            appointments=[_appointment("10:00", "11:00", "b")],
            requested_staff=SpecificStaff("b"),
        )
        times = _times(slots)

        assert all(slot.eligible_staff_ids == ("b",) for slot in slots)
        assert "10:15" not in times

    def test_unknown_specific_staff_returns_empty(self):
        assert _find(requested_staff=SpecificStaff("ghost")) == []

    def test_end_to_end_monday(self):
        """
        Shop Mon-Fri 09:00-17:00, buffer 10, 15-minute grid, one staff member
        following shop hours, booked 09:00-09:30. The booking blocks until
        09:40, so the first slot on the grid is 09:45.
        """
        slots = _find(
            _config(buffer_minutes=10, slot_interval_minutes=15),
            appointments=[_appointment("09:00", "09:30", "ana")],
            now=EARLY,
        )

        assert slots[0].time == "09:45"
        assert slots[0].eligible_staff_ids == ("ana",)
        assert slots[-1].time == "16:15"

    def test_is_deterministic(self):
        kwargs = dict(
            staff=[StaffMember("a"), StaffMember("b")],
            appointments=[_appointment("10:00", "11:00", "a")],
        )

        assert _find(**kwargs) == _find(**kwargs)


class TestPreconditions:
    """Missing or invalid inputs fail fast."""

    def _engine(self):
        return SlotEngine(_config())

    def _inputs(self, **overrides):
        inputs = dict(
            day=MONDAY,
            total_duration_minutes=30,
            shop_rules=_shop_rules(),
            staff_rules={},
            staff=[StaffMember("ana")],
            blackouts=[],
            appointments=[],
            now=EARLY,
        )
        inputs.update(overrides)
        return inputs

    @pytest.mark.parametrize("name", ["shop_rules", "staff_rules", "staff", "blackouts", "appointments"])
    def test_missing_input(self, name):
        with pytest.raises(PreconditionError, match=name):
            self._engine().find_available_slots(**self._inputs(**{name: None}))

    def test_naive_now_rejected(self):
        with pytest.raises(PreconditionError, match="timezone-aware"):
            self._engine().find_available_slots(**self._inputs(now=datetime(2024, 11, 25, 7, 0)))

    def test_missing_now_rejected(self):
        with pytest.raises(PreconditionError, match="now"):
            self._engine().find_available_slots(**self._inputs(now=None))

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(PreconditionError, match="total_duration_minutes"):
            self._engine().find_available_slots(**self._inputs(total_duration_minutes=duration))

    def test_datetime_as_day_rejected(self):
        with pytest.raises(PreconditionError, match="day must be a date"):
            self._engine().find_available_slots(**self._inputs(day=EARLY))


class TestSelectStaff:
    """Tests for resolving the requested staff choice."""

    def test_any_staff_returns_active_roster(self):
        staff = [StaffMember("a"), StaffMember("b", is_active=False), StaffMember("c")]

        assert [m.staff_id for m in select_staff(staff, ANY_STAFF)] == ["a", "c"]

    def test_specific_inactive_staff_is_not_selected(self):
        staff = [StaffMember("a"), StaffMember("b", is_active=False)]

        assert select_staff(staff, SpecificStaff("b")) == []
