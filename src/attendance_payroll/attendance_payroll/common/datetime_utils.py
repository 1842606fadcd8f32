from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterator
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM (or HH:MM:SS) into time."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)


def now_local(timezone: str | None = None) -> datetime:
    """Current company-local wall-clock time (naive).

    Note: Wrapped so tests can patch/mock easier.
    """
    if not timezone:
        return datetime.now()
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, clamped at 0 (clock skew)."""
    return max(0, int((end - start).total_seconds() // 60))


def minutes_to_hours(minutes: int) -> Decimal:
    return Decimal(int(minutes)) / Decimal(60)


def hours_between(start: datetime, end: datetime, *, minus_minutes: int = 0) -> Decimal:
    minutes = whole_minutes_between(start, end) - int(minus_minutes or 0)
    return minutes_to_hours(max(minutes, 0))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def iter_days(start: date, end: date) -> Iterator[date]:
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


def week_start(day: date) -> date:
    """Monday of the ISO week containing day."""
    return day - timedelta(days=day.weekday())
