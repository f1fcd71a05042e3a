"""Fixed reservation time slots"""

from datetime import date, datetime, time
from typing import List, Optional

# Half-hour slots, two service windows
LUNCH_SLOTS: List[str] = [
    "11:00", "11:30", "12:00", "12:30", "13:00", "13:30", "14:00", "14:30",
]
DINNER_SLOTS: List[str] = [
    "18:00", "18:30", "19:00", "19:30", "20:00", "20:30", "21:00", "21:30", "22:00",
]
TIME_SLOTS: List[str] = LUNCH_SLOTS + DINNER_SLOTS


def is_valid_slot(value: Optional[str]) -> bool:
    """Check a slot label against the enumeration"""
    return value in TIME_SLOTS


def slot_time(value: str) -> time:
    """Parse an HH:MM slot label"""
    return datetime.strptime(value, "%H:%M").time()


def combine(day: date, slot: str) -> datetime:
    """Start of the slot on the given day, as naive local time"""
    return datetime.combine(day, slot_time(slot))
