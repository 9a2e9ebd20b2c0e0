"""Date manipulation utilities"""

from datetime import datetime, timezone
from typing import List


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def first_day_of_month(value: datetime) -> datetime:
    """Midnight on the first day of the month containing value"""
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def add_months(value: datetime, months: int) -> datetime:
    """Shift a first-of-month datetime by a whole number of months (may be negative)"""
    month_index = value.year * 12 + (value.month - 1) + months
    return value.replace(year=month_index // 12, month=month_index % 12 + 1)


def month_key(value: datetime) -> str:
    """Format as YYYY-MM without going through locale-aware strftime"""
    return f"{value.year:04d}-{value.month:02d}"


def trailing_month_starts(now: datetime, count: int) -> List[datetime]:
    """
    First day of each of the last `count` calendar months ending at now's month.

    Returned in chronological order, e.g. now=2024-03-15, count=3 →
    [2024-01-01, 2024-02-01, 2024-03-01]
    """
    current = first_day_of_month(now)
    return [add_months(current, -offset) for offset in range(count - 1, -1, -1)]
