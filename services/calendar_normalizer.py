"""
Calendar Normalizer

Canonicalizes date-like input into a UTC calendar day and resolves the
inclusive date ranges every other analytics service works on.

A calendar day is always taken from the input's own UTC fields, never from
the local time zone of the process. "2024-03-01" and
"2024-03-01T23:59:59+00:00" are the same day; "2024-03-01T23:30:00-02:00"
is 2024-03-02.
"""

from dataclasses import dataclass
from datetime import datetime, date, timedelta, timezone
from typing import Any, Iterator, Optional, Union
import logging

from core.config import settings
from core.exceptions import InvalidDate, InvalidRange

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] pair of UTC calendar days."""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidRange("from must be <= to", start=self.start, end=self.end)

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return days_between_inclusive(self.start, self.end)

    def iter_days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def to_dict(self) -> dict:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}


def _parse_iso(raw: str) -> datetime:
    text = raw.strip()
    if not text:
        raise InvalidDate(raw)
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise InvalidDate(raw) from None


def normalize_day(value: Any) -> date:
    """
    Truncate a date-like value to its UTC calendar day.

    Args:
        value: ISO-8601 string, date or datetime. Aware datetimes are converted
            to UTC first; naive ones are read as UTC.

    Returns:
        The civil date in the UTC reference.

    Raises:
        InvalidDate: If the value is not a supported type or cannot be parsed.
    """
    if isinstance(value, str):
        value = _parse_iso(value)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    raise InvalidDate(value)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def days_between_inclusive(start: date, end: date) -> int:
    """Number of calendar days in [start, end]; zero or negative when end < start."""
    return (end - start).days + 1


def resolve_range(
    raw_from: Optional[DateLike] = None,
    raw_to: Optional[DateLike] = None,
    today: Optional[DateLike] = None,
    window_days: Optional[int] = None,
) -> DateRange:
    """
    Resolve caller-supplied bounds into an inclusive DateRange.

    Missing bounds default to the trailing window [today - window_days, today],
    with window_days taken from settings.DEFAULT_RANGE_DAYS.

    Raises:
        InvalidDate: If a supplied bound cannot be parsed.
        InvalidRange: If the resolved start comes after the resolved end.
    """
    reference = normalize_day(today) if today is not None else utc_today()
    if window_days is None:
        window_days = settings.DEFAULT_RANGE_DAYS

    start = normalize_day(raw_from) if raw_from is not None else reference - timedelta(days=window_days)
    end = normalize_day(raw_to) if raw_to is not None else reference

    if start > end:
        logger.debug(f"Rejected range {start} > {end}")
        raise InvalidRange("from must be <= to", start=start, end=end)

    return DateRange(start=start, end=end)
