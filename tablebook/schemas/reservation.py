"""Reservation schemas"""

from datetime import date, datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel

from tablebook.schemas.table import TableResponse


class ReservationCreate(BaseModel):
    """Create reservation request"""
    table_id: Optional[UUID] = None
    reservation_date: Optional[date] = None
    reservation_time: Optional[str] = None
    guest_count: int = 2
    special_requests: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response"""
    id: UUID
    user_id: UUID
    table_id: UUID
    reservation_date: date
    reservation_time: str
    guest_count: int
    special_requests: Optional[str]
    status: str
    created_at: datetime
    updated_at: Optional[datetime]
    table: Optional[TableResponse] = None
    is_past: bool = False
    can_cancel: bool = False

    class Config:
        from_attributes = True


class ReservationListResponse(BaseModel):
    """A user's reservations split into upcoming and past"""
    total: int
    upcoming: List[ReservationResponse]
    past: List[ReservationResponse]


class ReservationSummaryResponse(BaseModel):
    """Dashboard counters and the next few bookings"""
    total: int
    upcoming_count: int
    completed_count: int
    next_up: List[ReservationResponse] = []


class ErrorResponse(BaseModel):
    """Rejected booking operation"""
    code: str
    detail: str
