# app/utils/timezones.py
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from fastapi import HTTPException

from app.core.config import get_settings


def restaurant_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().restaurant_timezone)


def local_now(now: Optional[datetime] = None) -> datetime:
    """Current wall-clock time at the restaurant, naive (matches stored slots)."""
    tz = restaurant_tz()
    current = (now or datetime.now(tz)).astimezone(tz)
    return current.replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def parse_day(day_str: str) -> date:
    try:
        return date.fromisoformat(day_str)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Date must be in YYYY-MM-DD format")


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """
    Half-open window [day 00:00, next day 00:00) as naive local datetimes.
    Built from the calendar date directly so no UTC shift can move it a day.
    """
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)
