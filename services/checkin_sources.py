"""
Check-in records and collaborator interfaces.

The analytics services never query a database directly. They are handed
records that a source already fetched, or a source implementing one of
the interfaces below:

- CheckinSource: check-in rows and grouped counts for a date range
- GoalSource: goal target lookup
- LeaderboardStore: period-scoped leaderboard persistence (replace semantics)
- NotificationSink: per-user notification delivery

services.sql_checkin_sources implements the first three on SQLAlchemy;
tests use in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from core.exceptions import InvalidTarget
from services.calendar_normalizer import DateRange, DateLike

logger = logging.getLogger(__name__)


class GoalTargetType(str, Enum):
    """How a goal measures progress."""
    DAILY = "DAILY"        # one binary check-in per day
    BOOLEAN = "BOOLEAN"    # binary, explicit done flag
    COUNT = "COUNT"        # cumulative value against target_value
    WEEKLY = "WEEKLY"      # aggregated exactly like COUNT

    @property
    def needs_value(self) -> bool:
        return self in (GoalTargetType.COUNT, GoalTargetType.WEEKLY)

    @classmethod
    def parse(cls, value) -> "GoalTargetType":
        try:
            return cls(value)
        except ValueError:
            raise InvalidTarget(f"Unknown target type: {value!r}", field="target_type") from None


@dataclass(frozen=True)
class CheckIn:
    """One observation for a goal or streak membership on a UTC day."""
    day: date
    done: bool = False
    value: Optional[float] = None
    subject_id: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.done or (self.value or 0) > 0


@dataclass
class GoalSpec:
    """Target semantics of a goal, as returned by a GoalSource."""
    goal_id: str
    target_type: GoalTargetType
    start_date: DateLike
    target_value: Optional[float] = None
    end_date: Optional[DateLike] = None

    def __post_init__(self):
        if not isinstance(self.target_type, GoalTargetType):
            self.target_type = GoalTargetType.parse(self.target_type)


@dataclass
class LeaderboardEntry:
    """One user's score within a period."""
    period: str
    user_id: str
    score: int
    extra: Optional[Dict[str, Any]] = field(default=None)


class CheckinSource(ABC):
    """Read access to goal and streak check-ins."""

    @abstractmethod
    def goal_checkins(self, goal_id: str, user_id: str, date_range: DateRange) -> List[CheckIn]:
        """All check-ins of one user's goal within the range."""

    @abstractmethod
    def streak_checkins(
        self,
        streak_id: str,
        user_id: str,
        date_range: Optional[DateRange] = None,
        done_only: bool = False,
    ) -> List[CheckIn]:
        """
        One member's check-ins for a streak, ascending by day.

        A None range means the member's whole history.
        """

    @abstractmethod
    def user_goal_checkins(self, user_id: str, date_range: DateRange) -> List[CheckIn]:
        """All goal check-ins of a user, across goals, within the range."""

    @abstractmethod
    def user_streak_checkins(self, user_id: str, date_range: DateRange) -> List[CheckIn]:
        """Done streak check-ins of a user, across streaks, within the range."""

    @abstractmethod
    def grouped_goal_counts(self, date_range: DateRange) -> Dict[str, int]:
        """Per-user count of active goal check-ins within the range."""

    @abstractmethod
    def grouped_streak_counts(self, date_range: DateRange) -> Dict[str, int]:
        """Per-user count of done streak check-ins within the range."""


class GoalSource(ABC):

    @abstractmethod
    def get_goal(self, goal_id: str) -> Optional[GoalSpec]:
        """Return the goal's target semantics, or None when it does not exist."""


class LeaderboardStore(ABC):
    """Period-scoped leaderboard persistence."""

    @abstractmethod
    def replace_all(self, period: str, entries: List[LeaderboardEntry]) -> None:
        """
        Delete every entry stored for the period, then insert the new ones.

        Must behave as a single unit: after it returns, only `entries`
        exist for the period (possibly none).
        """

    @abstractmethod
    def list_ordered_by_score_desc(self, period: str, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """Stored entries for the period, highest score first."""


class NotificationSink(ABC):

    @abstractmethod
    def dispatch(self, user_id: str, kind: str, payload: Dict[str, Any]) -> None:
        """
        Deliver one notification.

        May raise; the caller isolates failures per recipient.
        """
