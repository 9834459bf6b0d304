"""
Ranking Aggregator

Builds the period leaderboard from per-user check-in counts.

Steps:
1. score = qualifying goal check-ins + done streak check-ins
2. users with score <= 0 are left out
3. the stored leaderboard for the period is fully replaced
4. the stored set is read back highest score first; ties go to the lower
   user id; rank is the 1-based position (no gaps)
5. every ranked user is notified (RANKING_TOP3 or RANKING_RESULT)

Recomputing a period with the same input yields the same leaderboard.
Earlier results for that period are discarded.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
import logging

from core.config import settings
from services.calendar_normalizer import DateRange
from services.checkin_sources import LeaderboardEntry, LeaderboardStore, NotificationSink
from services.notification_dispatch import DispatchReport, Notification, dispatch_all

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    TOP3 = "RANKING_TOP3"
    RESULT = "RANKING_RESULT"


@dataclass
class RankedEntry:
    rank: int
    user_id: str
    score: int
    extra: Optional[Dict[str, Any]] = None

    def to_dict(self) -> dict:
        return {"rank": self.rank, "user_id": self.user_id, "score": self.score, "extra": self.extra}


@dataclass
class RankingResult:
    """Leaderboard of one period."""
    period: str
    total_users: int
    rankings: List[RankedEntry]
    date_range: Optional[DateRange] = None
    dispatch: DispatchReport = field(default_factory=DispatchReport)

    def to_dict(self) -> dict:
        data = {
            "period": self.period,
            "total_users": self.total_users,
            "rankings": [r.to_dict() for r in self.rankings],
        }
        if self.date_range is not None:
            data.update(self.date_range.to_dict())
        return data


def build_scores(goal_counts: Mapping[str, int], streak_counts: Mapping[str, int]) -> Dict[str, int]:
    """Sum both sources per user and drop users without activity."""
    scores: Dict[str, int] = {}
    for counts in (goal_counts, streak_counts):
        for user_id, count in counts.items():
            scores[user_id] = scores.get(user_id, 0) + int(count)
    return {user_id: score for user_id, score in scores.items() if score > 0}


def rank_entries(entries: List[LeaderboardEntry]) -> List[RankedEntry]:
    """Order by score desc then user id, and number positions from 1."""
    ordered = sorted(entries, key=lambda e: (-e.score, str(e.user_id)))
    return [
        RankedEntry(rank=position, user_id=e.user_id, score=e.score, extra=e.extra)
        for position, e in enumerate(ordered, start=1)
    ]


def notification_kind(rank: int, top_threshold: Optional[int] = None) -> NotificationKind:
    threshold = settings.TOP_RANK_THRESHOLD if top_threshold is None else top_threshold
    return NotificationKind.TOP3 if rank <= threshold else NotificationKind.RESULT


class RankingAggregator:
    """
    Computes and reads period leaderboards.

    Collaborators are passed in; the aggregator keeps no state between calls.
    """

    def __init__(
        self,
        store: LeaderboardStore,
        notifier: Optional[NotificationSink] = None,
        max_workers: Optional[int] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.max_workers = max_workers

    def compute(
        self,
        period: str,
        date_range: DateRange,
        goal_counts: Mapping[str, int],
        streak_counts: Mapping[str, int],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RankingResult:
        """
        Recompute the leaderboard for `period` from grouped counts.

        The store write is committed before notifications go out; a failing
        notification never rolls it back.
        """
        scores = build_scores(goal_counts, streak_counts)
        entries = [
            LeaderboardEntry(period=period, user_id=user_id, score=score, extra=dict(metadata) if metadata else None)
            for user_id, score in scores.items()
        ]

        self.store.replace_all(period, entries)
        logger.info(f"Ranking {period}: stored {len(entries)} entries for {date_range.start}..{date_range.end}")

        rankings = rank_entries(self.store.list_ordered_by_score_desc(period))
        total_users = len(rankings)

        dispatch = DispatchReport()
        if self.notifier is not None and rankings:
            label = (metadata or {}).get("label")
            notifications = [
                Notification(
                    user_id=entry.user_id,
                    kind=notification_kind(entry.rank).value,
                    payload={
                        "period": period,
                        "rank": entry.rank,
                        "score": entry.score,
                        "totalUsers": total_users,
                        "label": label,
                    },
                )
                for entry in rankings
            ]
            dispatch = dispatch_all(self.notifier, notifications, max_workers=self.max_workers)

        return RankingResult(
            period=period,
            total_users=total_users,
            rankings=rankings,
            date_range=date_range,
            dispatch=dispatch,
        )

    def list(self, period: str, limit: Optional[int] = None) -> RankingResult:
        """Read back a stored leaderboard, optionally truncated to `limit` entries."""
        if limit is None:
            limit = settings.LEADERBOARD_LIST_LIMIT
        rankings = rank_entries(self.store.list_ordered_by_score_desc(period))
        if limit is not None:
            rankings = rankings[:limit]
        return RankingResult(period=period, total_users=len(rankings), rankings=rankings)
