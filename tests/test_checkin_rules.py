"""
Unit tests for check-in rules
"""

import pytest
from datetime import date

from core.exceptions import ErrorKind, InvalidRange, InvalidTarget
from services.checkin_rules import (
    assert_day_in_window,
    derive_done,
    validate_checkin_value,
    validate_goal_target,
    validate_goal_window,
)
from services.checkin_sources import CheckIn, GoalTargetType


class TestValidateGoalTarget:

    @pytest.mark.parametrize("target_type", ["COUNT", "WEEKLY"])
    @pytest.mark.parametrize("value", [None, 0, 0.5])
    def test_numeric_goals_need_target(self, target_type, value):
        with pytest.raises(InvalidTarget) as exc:
            validate_goal_target(target_type, value)
        assert exc.value.error_code == ErrorKind.INVALID_TARGET
        assert exc.value.context == {"field": "target_value"}

    def test_numeric_goal_with_target(self):
        validate_goal_target(GoalTargetType.COUNT, 10)

    @pytest.mark.parametrize("target_type", [GoalTargetType.DAILY, GoalTargetType.BOOLEAN])
    def test_binary_goals_need_nothing(self, target_type):
        validate_goal_target(target_type, None)

    def test_unknown_target_type(self):
        with pytest.raises(InvalidTarget) as exc:
            validate_goal_target("YEARLY", 5)
        assert exc.value.error_code == ErrorKind.INVALID_TARGET
        assert exc.value.context == {"field": "target_type"}

    def test_parse_accepts_enum_and_string(self):
        assert GoalTargetType.parse("COUNT") is GoalTargetType.COUNT
        assert GoalTargetType.parse(GoalTargetType.DAILY) is GoalTargetType.DAILY


class TestValidateGoalWindow:

    def test_open_ended(self):
        validate_goal_window("2024-01-01")

    def test_end_before_start(self):
        with pytest.raises(InvalidRange):
            validate_goal_window("2024-02-01", "2024-01-31")

    def test_same_day(self):
        validate_goal_window("2024-02-01T08:00:00Z", "2024-02-01")


class TestValidateCheckinValue:

    def test_count_requires_value(self):
        with pytest.raises(InvalidTarget):
            validate_checkin_value(GoalTargetType.COUNT, None)

    def test_count_value_at_least_one(self):
        with pytest.raises(InvalidTarget):
            validate_checkin_value(GoalTargetType.WEEKLY, 0)

    def test_daily_rejects_value(self):
        with pytest.raises(InvalidTarget) as exc:
            validate_checkin_value(GoalTargetType.DAILY, 3)
        assert exc.value.context == {"field": "value"}

    def test_valid_combinations(self):
        validate_checkin_value(GoalTargetType.COUNT, 2)
        validate_checkin_value(GoalTargetType.BOOLEAN, None)


class TestAssertDayInWindow:

    def test_returns_normalized_day(self):
        assert assert_day_in_window("2024-01-05T10:00:00Z", "2024-01-01", "2024-01-31") == date(2024, 1, 5)

    def test_before_start(self):
        with pytest.raises(InvalidRange):
            assert_day_in_window("2023-12-31", "2024-01-01")

    def test_after_end(self):
        with pytest.raises(InvalidRange):
            assert_day_in_window("2024-02-01", "2024-01-01", "2024-01-31")

    def test_bounds_inclusive(self):
        assert assert_day_in_window("2024-01-31", "2024-01-01", "2024-01-31") == date(2024, 1, 31)


class TestDeriveDone:

    def test_count_reaches_target(self):
        assert derive_done(GoalTargetType.COUNT, 10, value=10) is True

    def test_count_below_target(self):
        assert derive_done(GoalTargetType.COUNT, 10, value=4, done=True) is False

    def test_count_without_value_uses_flag(self):
        assert derive_done(GoalTargetType.WEEKLY, 10, value=None, done=True) is True
        assert derive_done(GoalTargetType.WEEKLY, 10) is False

    def test_binary_defaults_to_done(self):
        assert derive_done(GoalTargetType.DAILY, None) is True
        assert derive_done(GoalTargetType.BOOLEAN, None, done=False) is False

    def test_below_target_value_still_active(self):
        """A partial numeric check-in is not done but still counts as activity."""
        done = derive_done(GoalTargetType.COUNT, 10, value=4)
        assert CheckIn(day=date(2024, 1, 1), done=done, value=4).is_active
