"""Shared request dependencies"""

from datetime import datetime
from zoneinfo import ZoneInfo

from tablebook.config import settings


def get_now() -> datetime:
    """Current wall-clock time in the restaurant's timezone, as naive local time"""
    return datetime.now(ZoneInfo(settings.restaurant_timezone)).replace(tzinfo=None)
