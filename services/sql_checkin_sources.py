"""
SQLAlchemy implementations of the check-in collaborator interfaces.

Rows are mapped to CheckIn / GoalSpec / LeaderboardEntry values so the
analytics services never see ORM objects.
"""

from typing import Dict, List, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from models import Goal, GoalCheckin, RankingEntry, StreakCheckin
from services.calendar_normalizer import DateRange
from services.checkin_sources import (
    CheckIn,
    CheckinSource,
    GoalSource,
    GoalSpec,
    LeaderboardEntry,
    LeaderboardStore,
)

logger = logging.getLogger(__name__)


def _goal_checkin(row: GoalCheckin) -> CheckIn:
    return CheckIn(day=row.date, done=bool(row.done), value=row.value, subject_id=row.goal_id, user_id=row.user_id)


def _streak_checkin(row: StreakCheckin) -> CheckIn:
    return CheckIn(day=row.date, done=bool(row.done), subject_id=row.streak_id, user_id=row.user_id)


def _goal_active():
    return or_(GoalCheckin.done.is_(True), GoalCheckin.value > 0)


class SqlCheckinSource(CheckinSource):

    def __init__(self, db: Session):
        self.db = db

    def goal_checkins(self, goal_id: str, user_id: str, date_range: DateRange) -> List[CheckIn]:
        rows = self.db.query(GoalCheckin).filter(
            GoalCheckin.goal_id == goal_id,
            GoalCheckin.user_id == user_id,
            GoalCheckin.date >= date_range.start,
            GoalCheckin.date <= date_range.end,
        ).order_by(GoalCheckin.date.asc()).all()
        return [_goal_checkin(r) for r in rows]

    def streak_checkins(
        self,
        streak_id: str,
        user_id: str,
        date_range: Optional[DateRange] = None,
        done_only: bool = False,
    ) -> List[CheckIn]:
        query = self.db.query(StreakCheckin).filter(
            StreakCheckin.streak_id == streak_id,
            StreakCheckin.user_id == user_id,
        )
        if date_range is not None:
            query = query.filter(
                StreakCheckin.date >= date_range.start,
                StreakCheckin.date <= date_range.end,
            )
        if done_only:
            query = query.filter(StreakCheckin.done.is_(True))
        return [_streak_checkin(r) for r in query.order_by(StreakCheckin.date.asc()).all()]

    def user_goal_checkins(self, user_id: str, date_range: DateRange) -> List[CheckIn]:
        rows = self.db.query(GoalCheckin).filter(
            GoalCheckin.user_id == user_id,
            GoalCheckin.date >= date_range.start,
            GoalCheckin.date <= date_range.end,
        ).all()
        return [_goal_checkin(r) for r in rows]

    def user_streak_checkins(self, user_id: str, date_range: DateRange) -> List[CheckIn]:
        rows = self.db.query(StreakCheckin).filter(
            StreakCheckin.user_id == user_id,
            StreakCheckin.date >= date_range.start,
            StreakCheckin.date <= date_range.end,
            StreakCheckin.done.is_(True),
        ).all()
        return [_streak_checkin(r) for r in rows]

    def grouped_goal_counts(self, date_range: DateRange) -> Dict[str, int]:
        rows = self.db.query(GoalCheckin.user_id, func.count(GoalCheckin.id)).filter(
            GoalCheckin.date >= date_range.start,
            GoalCheckin.date <= date_range.end,
            _goal_active(),
        ).group_by(GoalCheckin.user_id).all()
        return {user_id: int(count) for user_id, count in rows}

    def grouped_streak_counts(self, date_range: DateRange) -> Dict[str, int]:
        rows = self.db.query(StreakCheckin.user_id, func.count(StreakCheckin.id)).filter(
            StreakCheckin.date >= date_range.start,
            StreakCheckin.date <= date_range.end,
            StreakCheckin.done.is_(True),
        ).group_by(StreakCheckin.user_id).all()
        return {user_id: int(count) for user_id, count in rows}


class SqlGoalSource(GoalSource):

    def __init__(self, db: Session):
        self.db = db

    def get_goal(self, goal_id: str) -> Optional[GoalSpec]:
        goal = self.db.query(Goal).filter(Goal.id == goal_id).first()
        if goal is None:
            return None
        return GoalSpec(
            goal_id=goal.id,
            target_type=goal.target_type,
            target_value=goal.target_value,
            start_date=goal.start_date,
            end_date=goal.end_date,
        )


class SqlLeaderboardStore(LeaderboardStore):
    """Leaderboard rows in ranking_entry; replace_all commits as one transaction."""

    def __init__(self, db: Session):
        self.db = db

    def replace_all(self, period: str, entries: List[LeaderboardEntry]) -> None:
        try:
            deleted = self.db.query(RankingEntry).filter(
                RankingEntry.period == period
            ).delete(synchronize_session=False)
            self.db.add_all([
                RankingEntry(period=period, user_id=e.user_id, score=e.score, extra=e.extra)
                for e in entries
            ])
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.debug(f"Replaced {deleted} ranking rows for {period} with {len(entries)}")

    def list_ordered_by_score_desc(self, period: str, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        query = self.db.query(RankingEntry).filter(
            RankingEntry.period == period
        ).order_by(RankingEntry.score.desc(), RankingEntry.user_id.asc())
        if limit is not None:
            query = query.limit(limit)
        return [
            LeaderboardEntry(period=r.period, user_id=r.user_id, score=r.score, extra=r.extra)
            for r in query.all()
        ]
