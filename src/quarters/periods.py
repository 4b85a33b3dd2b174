"""Calendar arithmetic for quarters.

A quarter id is ``q<1-4>-<year>`` (case-insensitive on input, always lower
case when generated). Ranges are expressed in UTC: from the first instant of
the quarter's first month up to the last millisecond of its last day.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone as dt_timezone

from django.utils import timezone

from quarters.exceptions import InvalidIdError

QUARTER_ID_RE = re.compile(r"^q([1-4])-(\d{4})$", re.IGNORECASE)
QUARTERS = (1, 2, 3, 4)


@dataclass(frozen=True)
class QuarterRange:
    year: int
    quarter: int
    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    @property
    def months(self) -> list[str]:
        return quarter_months(self.year, self.quarter)

    def date_bounds(self) -> tuple[date, date]:
        """Inclusive bounds for ``DateField`` lookups."""
        return self.start_date, self.end_date

    def datetime_bounds(self) -> tuple[datetime, datetime]:
        return self.start, self.end


def make_quarter_id(year: int, quarter: int) -> str:
    return f"q{quarter}-{year}"


def parse_quarter_id(quarter_id) -> tuple[int, int]:
    """Return ``(year, quarter)`` for ``quarter_id`` or raise InvalidIdError."""
    match = QUARTER_ID_RE.match(str(quarter_id or "").strip())
    if match is None:
        raise InvalidIdError(f"Invalid quarter id: {quarter_id!r} (expected q<1-4>-<year>)")
    return int(match.group(2)), int(match.group(1))


def quarter_of(value: date | datetime) -> int:
    return (value.month - 1) // 3 + 1


def current_quarter(now: datetime | None = None) -> tuple[int, int]:
    """``(year, quarter)`` of ``now`` in UTC."""
    now = now or timezone.now()
    if timezone.is_aware(now):
        now = now.astimezone(dt_timezone.utc)
    return now.year, quarter_of(now)


def quarter_range(year: int, quarter: int) -> QuarterRange:
    if quarter not in QUARTERS:
        raise InvalidIdError(f"Quarter must be between 1 and 4, got {quarter}")
    start = datetime(year, (quarter - 1) * 3 + 1, 1, tzinfo=dt_timezone.utc)
    if quarter == 4:
        next_start = datetime(year + 1, 1, 1, tzinfo=dt_timezone.utc)
    else:
        next_start = datetime(year, quarter * 3 + 1, 1, tzinfo=dt_timezone.utc)
    return QuarterRange(year, quarter, start, next_start - timedelta(milliseconds=1))


def quarter_months(year: int, quarter: int) -> list[str]:
    """The three ``YYYY-MM`` month keys of a quarter."""
    first = (quarter - 1) * 3 + 1
    return [f"{year}-{month:02d}" for month in range(first, first + 3)]


def display_name(year: int, quarter: int) -> str:
    return f"Q{quarter} {year}"


def days_remaining(until: datetime | None, now: datetime | None = None) -> int:
    """Whole days left before ``until`` (rounded up, never negative)."""
    if until is None:
        return 0
    now = now or timezone.now()
    seconds = (until - now).total_seconds()
    if seconds <= 0:
        return 0
    return int(-(-seconds // 86400))
