from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Tuple

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def to_calendar_day(timestamp: datetime, tz: tzinfo = timezone.utc) -> date:
    """Local calendar day of a stored timestamp. Naive values are UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(tz).date()


def day_bounds(day: date, tz: tzinfo = timezone.utc) -> Tuple[datetime, datetime]:
    """Naive-UTC half-open interval [start, end) covering a local calendar day."""
    start = datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
    return start.replace(tzinfo=None), end.replace(tzinfo=None)


def date_window(days: int, now: datetime) -> Tuple[datetime, datetime]:
    return now - timedelta(days=days), now


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def previous_days(today: date, count: int) -> List[date]:
    return [today - timedelta(days=offset) for offset in range(count)]


def local_today(tz: tzinfo = timezone.utc) -> date:
    return datetime.now(tz).date()
