"""Date manipulation utilities - calendar month keys and time windows"""

import calendar
from datetime import datetime, timezone, tzinfo
from typing import List, Tuple
from zoneinfo import ZoneInfo

from spendwise.domain.models import TimeWindow


def get_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name ("UTC", "Asia/Manila", ...)"""
    return ZoneInfo(name)


def month_key(year: int, month: int) -> int:
    """Encode a calendar month as YYYYMM"""
    return year * 100 + month


def parse_month_key(key: int) -> Tuple[int, int]:
    """Decode YYYYMM into (year, month)"""
    year, month = divmod(key, 100)
    if year < 1 or not 1 <= month <= 12:
        raise ValueError(f"Invalid month key: {key}")
    return year, month


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move delta months forward (or backward if negative), rolling years"""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_window(key: int, tz: tzinfo) -> TimeWindow:
    """
    Time window covering a whole calendar month in the given zone.

    Starts at 00:00 on the 1st and ends at the last representable instant
    (23:59:59.999999) of the last day, both bounds inclusive.
    """
    year, month = parse_month_key(key)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=tz)
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=tz)
    return TimeWindow(start=start, end=end)


def current_month_key(reference: datetime, tz: tzinfo) -> int:
    """Month key of the month containing reference, seen from tz"""
    local = reference.astimezone(tz) if reference.tzinfo else reference.replace(tzinfo=tz)
    return month_key(local.year, local.month)


def trailing_month_windows(months_back: int, reference: datetime, tz: tzinfo) -> List[Tuple[int, TimeWindow]]:
    """
    One (month_key, window) pair per calendar month, walking backward from
    the month containing reference. Most-recent-first.
    """
    year, month = parse_month_key(current_month_key(reference, tz))
    windows = []
    for offset in range(months_back):
        y, m = shift_month(year, month, -offset)
        key = month_key(y, m)
        windows.append((key, month_window(key, tz)))
    return windows


def to_utc(value: datetime, tz: tzinfo) -> datetime:
    """Normalize an instant to aware UTC. Naive values are read as tz-local."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive instants coming back from storage"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
