"""
Activity Bucketing

Partitions goal and streak check-ins into day, ISO-week or month buckets
and counts them per source. Also builds the per-day heatmaps shown for a
single goal or streak.

Bucket keys:
- day:   "2024-01-05"
- week:  "2024-W01" (ISO-8601 week-year and week number)
- month: "2024-01"
"""

from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List
import logging

from core.exceptions import InvalidPeriod
from services.calendar_normalizer import DateRange, normalize_day
from services.checkin_sources import CheckIn

logger = logging.getLogger(__name__)


class BucketPeriod(str, Enum):
    """Bucketing granularity."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value) -> "BucketPeriod":
        if value is None:
            return cls.DAY
        try:
            return cls(value)
        except ValueError:
            raise InvalidPeriod(value) from None


@dataclass
class Bucket:
    key: str
    goal_checkins: int = 0
    streak_checkins: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ActivityMetrics:
    """Bucketed activity over a range."""
    period: BucketPeriod
    start: date
    end: date
    buckets: List[Bucket]

    def to_dict(self) -> dict:
        return {
            "period": self.period.value,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "buckets": [b.to_dict() for b in self.buckets],
        }


@dataclass
class HeatmapCell:
    day: date
    count: int

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "count": self.count}


def iso_week_key(day: date) -> str:
    """
    ISO-8601 week key.

    The week-year is the year owning the week's Thursday, so it can differ
    from the calendar year in the first or last days of a year:
    2024-12-30 is "2025-W01", 2021-01-03 is "2020-W53".
    """
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def bucket_key(day: date, period: BucketPeriod) -> str:
    if period == BucketPeriod.DAY:
        return day.isoformat()
    if period == BucketPeriod.MONTH:
        return f"{day.year}-{day.month:02d}"
    return iso_week_key(day)


def bucket_activity(
    date_range: DateRange,
    period,
    goal_checkins: Iterable[CheckIn],
    streak_checkins: Iterable[CheckIn],
) -> ActivityMetrics:
    """
    Count check-ins per bucket and per source.

    Goal check-ins count when active; streak check-ins count when done.
    A goal check-in creates its bucket even when it is inactive. Undone
    streak check-ins are skipped entirely and never create a bucket.
    Both streams are expected to be filtered to `date_range` already.

    Raises:
        InvalidPeriod: If `period` is not day, week or month.
    """
    period = BucketPeriod.parse(period)
    buckets: Dict[str, Bucket] = {}

    def upsert(key: str) -> Bucket:
        if key not in buckets:
            buckets[key] = Bucket(key=key)
        return buckets[key]

    for checkin in goal_checkins:
        bucket = upsert(bucket_key(normalize_day(checkin.day), period))
        if checkin.is_active:
            bucket.goal_checkins += 1
        bucket.total = bucket.goal_checkins + bucket.streak_checkins

    for checkin in streak_checkins:
        if not checkin.done:
            continue
        bucket = upsert(bucket_key(normalize_day(checkin.day), period))
        bucket.streak_checkins += 1
        bucket.total = bucket.goal_checkins + bucket.streak_checkins

    items = sorted(buckets.values(), key=lambda b: b.key)
    logger.debug(f"Bucketed activity into {len(items)} {period.value} buckets")

    return ActivityMetrics(
        period=period,
        start=date_range.start,
        end=date_range.end,
        buckets=items,
    )


def _heatmap(records: Iterable[CheckIn], done_only: bool) -> List[HeatmapCell]:
    counts: Dict[date, int] = {}
    for record in records:
        if done_only and not record.done:
            continue
        day = normalize_day(record.day)
        counts[day] = counts.get(day, 0) + 1
    return [HeatmapCell(day=d, count=counts[d]) for d in sorted(counts)]


def goal_heatmap(records: Iterable[CheckIn]) -> List[HeatmapCell]:
    """Check-ins per day for one goal, every record counted."""
    return _heatmap(records, done_only=False)


def streak_heatmap(records: Iterable[CheckIn]) -> List[HeatmapCell]:
    """Done check-ins per day for one streak member."""
    return _heatmap(records, done_only=True)
