"""
Goal Progress Calculator

Turns a goal's target semantics and its check-ins within a range into a
completion fraction.

Completion policy by target type:
- DAILY: distinct active days over the days in the goal window
  [start_date, end_date or range end], capped at 1
- COUNT / WEEKLY: summed value over target_value, capped at 1
- BOOLEAN: no fractional progress, completion is None

Completion is None whenever it cannot be computed (degenerate window,
missing target value). It never raises for those cases.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional
import logging

from services.calendar_normalizer import DateRange, normalize_day, days_between_inclusive
from services.checkin_sources import CheckIn, GoalSpec, GoalTargetType

logger = logging.getLogger(__name__)


@dataclass
class GoalProgress:
    """Progress summary of one goal over a range."""
    goal_id: str
    target_type: GoalTargetType
    target_value: Optional[float]
    start: date
    end: date
    total_checkins: int
    done_count: int
    value_sum: float
    done_days: int
    completion: Optional[float]

    def to_dict(self) -> dict:
        return {
            "goal_id": self.goal_id,
            "target_type": self.target_type.value,
            "target_value": self.target_value,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "total_checkins": self.total_checkins,
            "done_count": self.done_count,
            "value_sum": self.value_sum,
            "done_days": self.done_days,
            "completion": self.completion,
        }


def daily_completion(goal: GoalSpec, date_range: DateRange, done_days: int) -> Optional[float]:
    goal_start = normalize_day(goal.start_date)
    goal_end = normalize_day(goal.end_date if goal.end_date is not None else date_range.end)

    if goal_end < goal_start:
        logger.debug(f"Goal {goal.goal_id} window is degenerate ({goal_start} > {goal_end})")
        return None

    total_days = days_between_inclusive(goal_start, goal_end)
    if total_days <= 0:
        return None

    return min(done_days, total_days) / total_days


def cumulative_completion(target_value: Optional[float], value_sum: float) -> Optional[float]:
    if not target_value or target_value <= 0:
        return None
    return min(1.0, value_sum / target_value)


def compute_goal_progress(
    goal: GoalSpec,
    date_range: DateRange,
    records: Iterable[CheckIn],
) -> GoalProgress:
    """
    Summarize a goal's check-ins within a range.

    Args:
        goal: Target semantics of the goal
        date_range: Range the records were fetched for
        records: The goal's check-ins within the range (not mutated)

    Returns:
        GoalProgress with counts and completion (None when not computable)
    """
    records = list(records)

    active = [r for r in records if r.is_active]
    value_sum = sum((r.value or 0) for r in records)
    # Distinct days guard against duplicate-day rows
    done_days = len({normalize_day(r.day) for r in active})

    if goal.target_type == GoalTargetType.DAILY:
        completion = daily_completion(goal, date_range, done_days)
    elif goal.target_type.needs_value:
        completion = cumulative_completion(goal.target_value, value_sum)
    else:
        completion = None

    return GoalProgress(
        goal_id=goal.goal_id,
        target_type=goal.target_type,
        target_value=goal.target_value,
        start=date_range.start,
        end=date_range.end,
        total_checkins=len(records),
        done_count=len(active),
        value_sum=value_sum,
        done_days=done_days,
        completion=completion,
    )
