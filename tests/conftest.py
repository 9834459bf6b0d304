"""
Pytest configuration and fixtures

Collaborator fakes live here so every service test can run without a
database. The SQL adapter tests get an in-memory SQLite session that is
thrown away after each test.
"""
import pytest
import sys
import os
import threading
from datetime import date
from typing import Dict, List, Optional

# Add the project root to the path so we can import core/services/models
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from core.database import Base, build_engine, init_db
from services.calendar_normalizer import DateRange
from services.checkin_sources import (
    CheckIn,
    CheckinSource,
    GoalSource,
    GoalSpec,
    LeaderboardEntry,
    LeaderboardStore,
    NotificationSink,
)


class InMemoryCheckinSource(CheckinSource):
    """Goal and streak check-ins held in lists."""

    def __init__(self, goal_rows: List[CheckIn] = None, streak_rows: List[CheckIn] = None):
        self.goal_rows = list(goal_rows or [])
        self.streak_rows = list(streak_rows or [])

    @staticmethod
    def _in(rows, date_range):
        if date_range is None:
            return list(rows)
        return [r for r in rows if r.day in date_range]

    def goal_checkins(self, goal_id, user_id, date_range):
        rows = [r for r in self.goal_rows if r.subject_id == goal_id and r.user_id == user_id]
        return sorted(self._in(rows, date_range), key=lambda r: r.day)

    def streak_checkins(self, streak_id, user_id, date_range=None, done_only=False):
        rows = [r for r in self.streak_rows if r.subject_id == streak_id and r.user_id == user_id]
        if done_only:
            rows = [r for r in rows if r.done]
        return sorted(self._in(rows, date_range), key=lambda r: r.day)

    def user_goal_checkins(self, user_id, date_range):
        return self._in([r for r in self.goal_rows if r.user_id == user_id], date_range)

    def user_streak_checkins(self, user_id, date_range):
        return self._in([r for r in self.streak_rows if r.user_id == user_id and r.done], date_range)

    def grouped_goal_counts(self, date_range):
        counts: Dict[str, int] = {}
        for r in self._in(self.goal_rows, date_range):
            if r.is_active:
                counts[r.user_id] = counts.get(r.user_id, 0) + 1
        return counts

    def grouped_streak_counts(self, date_range):
        counts: Dict[str, int] = {}
        for r in self._in(self.streak_rows, date_range):
            if r.done:
                counts[r.user_id] = counts.get(r.user_id, 0) + 1
        return counts


class InMemoryGoalSource(GoalSource):

    def __init__(self, *goals: GoalSpec):
        self.goals = {g.goal_id: g for g in goals}

    def get_goal(self, goal_id):
        return self.goals.get(goal_id)


class InMemoryLeaderboardStore(LeaderboardStore):
    """Keeps insertion order, like a store without an explicit tie-break."""

    def __init__(self):
        self.periods: Dict[str, List[LeaderboardEntry]] = {}
        self.replace_calls = 0

    def replace_all(self, period, entries):
        self.replace_calls += 1
        self.periods[period] = list(entries)

    def list_ordered_by_score_desc(self, period, limit=None):
        rows = sorted(self.periods.get(period, []), key=lambda e: -e.score)
        return rows[:limit] if limit is not None else rows


class RecordingSink(NotificationSink):
    """Records every dispatch; users in `failing` raise instead."""

    def __init__(self, failing: Optional[set] = None):
        self.failing = failing or set()
        self.sent = []
        self._lock = threading.Lock()

    def dispatch(self, user_id, kind, payload):
        if user_id in self.failing:
            raise RuntimeError(f"push gateway rejected {user_id}")
        with self._lock:
            self.sent.append((user_id, kind, payload))

    def by_user(self):
        return {user_id: (kind, payload) for user_id, kind, payload in self.sent}


@pytest.fixture
def january_range():
    return DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31))


@pytest.fixture
def leaderboard_store():
    return InMemoryLeaderboardStore()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture(scope="function")
def db_session():
    """
    In-memory SQLite session with the full schema.

    Each test gets a fresh database; nothing persists.
    """
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    session = Session(bind=engine, expire_on_commit=False)

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
