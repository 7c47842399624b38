"""
Resolution of the shop's opening hours for a given date.
"""

from datetime import date
from typing import Dict, Iterable, Optional, Sequence

from .exceptions import ConfigurationError
from .models import DayHours, WeeklyHoursRule
from .time_windows import day_of_week, parse_time_to_minutes


def index_rules_by_day(rules: Iterable[WeeklyHoursRule]) -> Dict[int, WeeklyHoursRule]:
    """
    Map weekday -> rule for a single owner.

    Raises:
        ConfigurationError: If the owner has two rules for the same weekday
    """
    by_day: Dict[int, WeeklyHoursRule] = {}

    for rule in rules:
        if rule.day_of_week in by_day:
            owner = rule.owner_id or "shop"
            raise ConfigurationError(
                f"Duplicate hours rule for weekday {rule.day_of_week} (owner: {owner})"
            )
        by_day[rule.day_of_week] = rule

    return by_day


def rule_hours(rule: WeeklyHoursRule) -> DayHours:
    """Parse an enabled rule's open/close strings into DayHours."""
    return DayHours(
        open_minutes=parse_time_to_minutes(rule.open_time),
        close_minutes=parse_time_to_minutes(rule.close_time),
    )


def resolve_shop_hours(rules: Sequence[WeeklyHoursRule], day: date) -> Optional[DayHours]:
    """
    Resolve the shop's bounds for ``day``.

    Returns None when there is no rule for the weekday or the rule is
    disabled. A malformed enabled rule raises instead of reading as closed.
    """
    rule = index_rules_by_day(rules).get(day_of_week(day))

    if rule is None or not rule.is_enabled:
        return None

    return rule_hours(rule)
