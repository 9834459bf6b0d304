"""
Check-in rules shared by writers of goal check-ins.

Writers call these before storing a row so that the analytics services
can rely on:
- COUNT/WEEKLY goals carry target_value >= 1, DAILY/BOOLEAN goals none
- numeric check-ins only on COUNT/WEEKLY goals, with value >= 1
- check-in days inside the goal window
- a stored `done` flag that agrees with the value
"""

from datetime import date
from typing import Optional

from core.exceptions import InvalidRange, InvalidTarget
from services.calendar_normalizer import DateLike, normalize_day
from services.checkin_sources import GoalTargetType


def validate_goal_target(target_type: GoalTargetType, target_value: Optional[float]) -> None:
    target_type = GoalTargetType.parse(target_type)
    if target_type.needs_value and (not target_value or target_value < 1):
        raise InvalidTarget("targetValue is required and must be >= 1 for COUNT/WEEKLY goals", field="target_value")


def validate_goal_window(start: DateLike, end: Optional[DateLike] = None) -> None:
    start_day = normalize_day(start)
    if end is not None:
        end_day = normalize_day(end)
        if end_day < start_day:
            raise InvalidRange("endDate must be >= startDate", start=start_day, end=end_day)


def validate_checkin_value(target_type: GoalTargetType, value: Optional[float]) -> None:
    target_type = GoalTargetType.parse(target_type)
    if target_type.needs_value:
        if value is None:
            raise InvalidTarget("value is required for COUNT/WEEKLY goals", field="value")
        if value < 1:
            raise InvalidTarget("value must be >= 1", field="value")
    elif value is not None:
        raise InvalidTarget("value does not apply to DAILY/BOOLEAN goals", field="value")


def assert_day_in_window(day: DateLike, start: DateLike, end: Optional[DateLike] = None) -> date:
    """Return the normalized day, or raise InvalidRange when it falls outside the window."""
    checkin_day = normalize_day(day)
    start_day = normalize_day(start)
    if checkin_day < start_day:
        raise InvalidRange("date is before startDate", start=start_day, end=checkin_day)
    if end is not None:
        end_day = normalize_day(end)
        if checkin_day > end_day:
            raise InvalidRange("date is after endDate", start=checkin_day, end=end_day)
    return checkin_day


def derive_done(
    target_type: GoalTargetType,
    target_value: Optional[float],
    value: Optional[float] = None,
    done: Optional[bool] = None,
) -> bool:
    """
    The done flag stored with a new goal check-in.

    COUNT/WEEKLY: reached when value >= target_value, otherwise the explicit
    flag (default False). DAILY/BOOLEAN: the explicit flag, default True.
    """
    target_type = GoalTargetType.parse(target_type)
    if target_type.needs_value:
        if target_value and value is not None:
            return value >= target_value
        return bool(done) if done is not None else False
    return done if done is not None else True
