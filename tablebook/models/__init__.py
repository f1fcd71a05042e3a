"""Database models"""

from tablebook.models.table import Table, Zone, ZONE_ORDER
from tablebook.models.reservation import (
    Reservation,
    ReservationStatus,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
)

__all__ = [
    "Table",
    "Zone",
    "ZONE_ORDER",
    "Reservation",
    "ReservationStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
]
