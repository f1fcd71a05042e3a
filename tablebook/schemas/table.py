"""Table and availability schemas"""

from datetime import date
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel

from tablebook.models.table import Zone


class TableResponse(BaseModel):
    """Table response"""
    id: UUID
    table_number: int
    capacity: int
    location: Zone

    class Config:
        from_attributes = True


class ZoneAvailabilityResponse(BaseModel):
    """Per-zone counts for a slot"""
    location: Zone
    count: int
    available: int
    min_capacity: int
    max_capacity: int

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    """Occupancy for one date and time slot"""
    reservation_date: Optional[date]
    reservation_time: Optional[str]
    known: bool  # False when date or time is missing
    occupied_table_ids: List[UUID] = []
    available_table_ids: List[UUID] = []
    total: int
    available: int
    zones: List[ZoneAvailabilityResponse] = []


class SlotsResponse(BaseModel):
    """Bookable time slots by service"""
    lunch: List[str]
    dinner: List[str]
