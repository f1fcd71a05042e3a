"""Pydantic schemas for request/response validation"""

from tablebook.schemas.table import (
    TableResponse,
    ZoneAvailabilityResponse,
    AvailabilityResponse,
    SlotsResponse,
)
from tablebook.schemas.reservation import (
    ReservationCreate,
    ReservationResponse,
    ReservationListResponse,
    ReservationSummaryResponse,
    ErrorResponse,
)

__all__ = [
    "TableResponse",
    "ZoneAvailabilityResponse",
    "AvailabilityResponse",
    "SlotsResponse",
    "ReservationCreate",
    "ReservationResponse",
    "ReservationListResponse",
    "ReservationSummaryResponse",
    "ErrorResponse",
]
