"""
Time windows used as range predicates against the metrics store.

A TimeWindow is a half-open ``[start, end)`` interval in UTC; either bound may
be None. Calendar windows are cut in the caller's report time zone and then
converted to UTC so the repository can filter with plain comparisons on any
backend.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from powerwatch.exceptions import InvalidQuery


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    """Return midnight of *day* in *tz*, expressed in UTC."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


@dataclass(frozen=True)
class TimeWindow:
    """Half-open UTC interval used to select samples.

    Attributes:
        start: Inclusive lower bound, or None for no lower bound.
        end: Exclusive upper bound, or None for no upper bound.
    """

    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def calendar_day(cls, day: date, tz: tzinfo) -> TimeWindow:
        """Window covering one calendar day in *tz*."""
        return cls(
            start=_local_midnight(day, tz),
            end=_local_midnight(day + timedelta(days=1), tz),
        )

    @classmethod
    def calendar_month(cls, year: int, month: int, tz: tzinfo) -> TimeWindow:
        """Window covering one calendar month in *tz*.

        Raises:
            InvalidQuery: If *month* is outside 1..12.
        """
        if not 1 <= month <= 12:
            raise InvalidQuery(f"Invalid month {month}")
        first = date(year, month, 1)
        following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        return cls(start=_local_midnight(first, tz), end=_local_midnight(following, tz))

    @classmethod
    def trailing_days(cls, days: int, now: datetime) -> TimeWindow:
        """Rolling window of the *days* days ending at *now*.

        *now* itself is included (the upper bound sits one microsecond past it).

        Raises:
            InvalidQuery: If *days* is not positive.
        """
        if days < 1:
            raise InvalidQuery(f"Trailing window must cover at least one day, got {days}")
        now = now.astimezone(UTC)
        return cls(start=now - timedelta(days=days), end=now + timedelta(microseconds=1))

    @classmethod
    def unbounded(cls) -> TimeWindow:
        """Window covering all history."""
        return cls()
