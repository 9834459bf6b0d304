"""
Check-in Stats Service

Wires the pure analytics services to their collaborators: resolves the
requested range, fetches records from the sources, and hands them to the
calculators. Ownership and membership checks happen before these calls.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import logging

from core.exceptions import NotFoundError
from services.activity_buckets import ActivityMetrics, HeatmapCell, bucket_activity, goal_heatmap, streak_heatmap
from services.calendar_normalizer import DateLike, resolve_range
from services.checkin_sources import CheckinSource, GoalSource, LeaderboardStore, NotificationSink
from services.goal_progress import GoalProgress, compute_goal_progress
from services.ranking_aggregator import RankingAggregator, RankingResult
from services.run_tracker import active_days, track_runs

logger = logging.getLogger(__name__)


@dataclass
class StreakMemberStats:
    """Run statistics of one streak member."""
    user_id: str
    current: int
    longest: int
    total_done: int

    def to_dict(self) -> dict:
        return asdict(self)


class CheckinStats:
    """Stats entry points over injected sources."""

    def __init__(
        self,
        checkins: CheckinSource,
        goals: Optional[GoalSource] = None,
        leaderboard: Optional[LeaderboardStore] = None,
        notifier: Optional[NotificationSink] = None,
    ):
        self.checkins = checkins
        self.goals = goals
        self.leaderboard = leaderboard
        self.notifier = notifier

    def _get_goal(self, goal_id: str):
        if self.goals is None:
            raise RuntimeError("CheckinStats was built without a GoalSource")
        goal = self.goals.get_goal(goal_id)
        if goal is None:
            raise NotFoundError("Goal", goal_id)
        return goal

    def goal_progress(
        self,
        goal_id: str,
        user_id: str,
        raw_from: Optional[DateLike] = None,
        raw_to: Optional[DateLike] = None,
    ) -> GoalProgress:
        goal = self._get_goal(goal_id)
        date_range = resolve_range(raw_from, raw_to)
        records = self.checkins.goal_checkins(goal_id, user_id, date_range)
        return compute_goal_progress(goal, date_range, records)

    def goal_heatmap(
        self,
        goal_id: str,
        user_id: str,
        raw_from: Optional[DateLike] = None,
        raw_to: Optional[DateLike] = None,
    ) -> List[HeatmapCell]:
        self._get_goal(goal_id)
        date_range = resolve_range(raw_from, raw_to)
        return goal_heatmap(self.checkins.goal_checkins(goal_id, user_id, date_range))

    def streak_heatmap(
        self,
        streak_id: str,
        user_id: str,
        raw_from: Optional[DateLike] = None,
        raw_to: Optional[DateLike] = None,
    ) -> List[HeatmapCell]:
        date_range = resolve_range(raw_from, raw_to)
        records = self.checkins.streak_checkins(streak_id, user_id, date_range, done_only=True)
        return streak_heatmap(records)

    def activity_metrics(
        self,
        user_id: str,
        raw_from: Optional[DateLike] = None,
        raw_to: Optional[DateLike] = None,
        period: Optional[str] = None,
    ) -> ActivityMetrics:
        date_range = resolve_range(raw_from, raw_to)
        return bucket_activity(
            date_range,
            period,
            self.checkins.user_goal_checkins(user_id, date_range),
            self.checkins.user_streak_checkins(user_id, date_range),
        )

    def streak_member_stats(self, streak_id: str, user_id: str) -> StreakMemberStats:
        """Current and longest run over the member's whole done history."""
        records = self.checkins.streak_checkins(streak_id, user_id, None, done_only=True)
        stats = track_runs(active_days(records))
        return StreakMemberStats(
            user_id=user_id,
            current=stats.current,
            longest=stats.longest,
            total_done=stats.total_active,
        )

    def compute_ranking(
        self,
        period: str,
        raw_from: Optional[DateLike] = None,
        raw_to: Optional[DateLike] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RankingResult:
        if self.leaderboard is None:
            raise RuntimeError("CheckinStats was built without a LeaderboardStore")
        date_range = resolve_range(raw_from, raw_to)
        aggregator = RankingAggregator(self.leaderboard, self.notifier)
        return aggregator.compute(
            period,
            date_range,
            self.checkins.grouped_goal_counts(date_range),
            self.checkins.grouped_streak_counts(date_range),
            metadata=metadata,
        )

    def list_ranking(self, period: str, limit: Optional[int] = None) -> RankingResult:
        if self.leaderboard is None:
            raise RuntimeError("CheckinStats was built without a LeaderboardStore")
        return RankingAggregator(self.leaderboard).list(period, limit)
