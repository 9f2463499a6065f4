# app/utils/time_windows.py
from datetime import date, datetime, time, timedelta
from typing import List
import re

from app.core.config import get_settings

_HHMM = re.compile(r"^([01]?\d|2[0-4]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """'18:30' -> 1110 minutes after midnight. '24:00' is accepted as end of day."""
    m = _HHMM.fullmatch((value or "").strip())
    if not m:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    minutes = int(m.group(1)) * 60 + int(m.group(2))
    if minutes > MINUTES_PER_DAY:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def generate_slots(opening: str, closing: str, interval_minutes: int) -> List[str]:
    """
    Slot start times from ``opening`` every ``interval_minutes`` while the
    start is before ``closing``. ('16:00', '24:00', 120) -> 16:00, 18:00, 20:00, 22:00
    """
    if interval_minutes <= 0:
        raise ValueError("Slot interval must be positive")
    start = parse_hhmm(opening)
    end = parse_hhmm(closing)
    if start >= end:
        raise ValueError("Opening time must be before closing time")

    slots = []
    current = start
    while current < end and current < MINUTES_PER_DAY:
        slots.append(format_hhmm(current))
        current += interval_minutes
    return slots


def configured_slots() -> List[str]:
    settings = get_settings()
    return generate_slots(
        settings.reservation_opening_time,
        settings.reservation_closing_time,
        settings.reservation_slot_minutes,
    )


def normalize_slot(value: str) -> str:
    """'9:00' -> '09:00'; raises ValueError on garbage."""
    return format_hhmm(parse_hhmm(value))


def is_valid_slot(value: str, slots: List[str]) -> bool:
    try:
        return normalize_slot(value) in slots
    except ValueError:
        return False


def slot_datetime(day: date, slot: str) -> datetime:
    minutes = parse_hhmm(slot)
    return datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)
