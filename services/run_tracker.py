"""
Run Tracker

Current and longest consecutive-day runs over a subject's active days.
"""

from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Iterable, List, Sequence

from services.calendar_normalizer import normalize_day
from services.checkin_sources import CheckIn

ONE_DAY = timedelta(days=1)


@dataclass
class RunStats:
    """Run lengths for one subject."""
    current: int = 0        # run ending at the last active day in the input
    longest: int = 0
    total_active: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def track_runs(days: Sequence[date]) -> RunStats:
    """
    Compute run lengths in a single pass.

    `days` must be ascending and free of duplicate calendar days; no sorting
    is done here. `current` is the run ending at the last element, which is
    not necessarily today.

    Example:
        >>> track_runs([date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5)])
        RunStats(current=1, longest=3, total_active=4)
    """
    run_length = 0
    longest = 0
    previous = None

    for day in days:
        if previous is not None and day - previous == ONE_DAY:
            run_length += 1
        else:
            run_length = 1
        longest = max(longest, run_length)
        previous = day

    return RunStats(current=run_length, longest=longest, total_active=len(days))


def active_days(records: Iterable[CheckIn], done_only: bool = True) -> List[date]:
    """
    Prepare records for track_runs.

    Normalizes each record's day, keeps done records (or active ones when
    done_only is False), collapses records on the same day and sorts.
    """
    days = set()
    for record in records:
        qualifies = record.done if done_only else record.is_active
        if qualifies:
            days.add(normalize_day(record.day))
    return sorted(days)
