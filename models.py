from sqlalchemy import Column, Integer, Boolean, Float, Date, DateTime, ForeignKey, Text, String, Index, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


class Goal(Base):
    __tablename__ = "goal"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(Text, nullable=False)
    # 'DAILY' | 'BOOLEAN' | 'COUNT' | 'WEEKLY'
    target_type = Column(String(16), nullable=False)
    target_value = Column(Integer, nullable=True)  # COUNT/WEEKLY only, >= 1
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    checkins = relationship("GoalCheckin", back_populates="goal", cascade="all, delete-orphan")


class GoalCheckin(Base):
    __tablename__ = "goal_checkin"

    id = Column(String(36), primary_key=True, default=_uuid)
    goal_id = Column(String(36), ForeignKey("goal.id"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    date = Column(Date, nullable=False)  # UTC calendar day
    done = Column(Boolean, default=False, nullable=False)
    value = Column(Float, nullable=True)

    goal = relationship("Goal", back_populates="checkins")

    __table_args__ = (
        Index("uq_goal_checkin_goal_date", "goal_id", "date", unique=True),
        Index("ix_goal_checkin_user_date", "user_id", "date"),
    )


class StreakCheckin(Base):
    """One member's check-in for a shared streak on a UTC day."""
    __tablename__ = "streak_checkin"

    id = Column(String(36), primary_key=True, default=_uuid)
    streak_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    date = Column(Date, nullable=False)
    done = Column(Boolean, default=True, nullable=False)
    meta = Column(JSON, nullable=True)

    __table_args__ = (
        Index("uq_streak_user_day", "streak_id", "user_id", "date", unique=True),
    )


class RankingEntry(Base):
    """
    Leaderboard row for one user in one period.

    The whole set for a period is deleted and re-inserted on every compute.
    """
    __tablename__ = "ranking_entry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    period = Column(String(64), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    score = Column(Integer, nullable=False)
    extra = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("uq_ranking_period_user", "period", "user_id", unique=True),
    )
