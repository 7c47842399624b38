"""
Resolution of each staff member's working hours for a given date.

A staff member without any configured rule follows the shop schedule. As soon
as one rule exists (on any weekday, enabled or not), the staff member's own
rules are authoritative and a weekday without an enabled rule is a day off.
"""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .business_hours import index_rules_by_day, rule_hours
from .exceptions import ConfigurationError
from .models import DayHours, StaffMember, WeeklyHoursRule
from .time_windows import day_of_week


def group_rules_by_staff(rules: Iterable[WeeklyHoursRule]) -> Dict[str, List[WeeklyHoursRule]]:
    """
    Group flat staff rules by their ``owner_id``.

    Raises:
        ConfigurationError: If a rule has no owner or an owner repeats a weekday
    """
    grouped: Dict[str, List[WeeklyHoursRule]] = {}

    for rule in rules:
        if not rule.owner_id:
            raise ConfigurationError(f"Staff hours rule without owner: {rule}")
        grouped.setdefault(rule.owner_id, []).append(rule)

    for staff_rules in grouped.values():
        index_rules_by_day(staff_rules)

    return grouped


def resolve_staff_hours(
    staff_id: str,
    staff_rules: Mapping[str, Sequence[WeeklyHoursRule]],
    shop_hours: Optional[DayHours],
    day: date,
) -> Optional[DayHours]:
    """
    Effective working bounds of one staff member on ``day``.

    Returns None when the staff member is off, which is always the case on
    days the shop is closed.
    """
    if shop_hours is None:
        return None

    own_rules = staff_rules.get(staff_id) or []

    if not own_rules:
        return shop_hours

    rule = index_rules_by_day(own_rules).get(day_of_week(day))

    if rule is None or not rule.is_enabled:
        return None

    return rule_hours(rule)


def resolve_roster_hours(
    staff: Sequence[StaffMember],
    staff_rules: Mapping[str, Sequence[WeeklyHoursRule]],
    shop_hours: Optional[DayHours],
    day: date,
) -> Dict[str, DayHours]:
    """
    Resolve hours for every staff member once per query.

    The result keeps roster order and leaves out staff who are off.
    """
    working: Dict[str, DayHours] = {}

    for member in staff:
        hours = resolve_staff_hours(member.staff_id, staff_rules, shop_hours, day)
        if hours is not None:
            working[member.staff_id] = hours

    return working
