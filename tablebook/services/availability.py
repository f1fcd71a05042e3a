"""Availability resolver: which tables are held for a slot"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.models.reservation import Reservation, ACTIVE_STATUSES
from tablebook.models.table import Table
from tablebook.services.catalog import ZoneAvailability, list_tables, zone_breakdown
from tablebook.services.store import store_errors


@dataclass
class AvailabilitySnapshot:
    """Catalog and occupancy for one slot, read together"""
    reservation_date: Optional[date]
    reservation_time: Optional[str]
    tables: List[Table]
    occupied: Set[UUID] = field(default_factory=set)

    @property
    def known(self) -> bool:
        # Without both coordinates nothing can be said about occupancy
        return self.reservation_date is not None and self.reservation_time is not None

    @property
    def available(self) -> List[Table]:
        return [t for t in self.tables if t.id not in self.occupied]

    @property
    def zones(self) -> List[ZoneAvailability]:
        return zone_breakdown(self.tables, self.occupied)


async def occupied_tables(
    db: AsyncSession,
    reservation_date: Optional[date],
    reservation_time: Optional[str],
) -> Set[UUID]:
    """
    Table ids held by an active reservation for the slot.

    Returns an empty set when either coordinate is missing. That means
    "unknown", not "everything is free".
    """
    if reservation_date is None or reservation_time is None:
        return set()

    with store_errors():
        result = await db.execute(
            select(Reservation.table_id).where(
                Reservation.reservation_date == reservation_date,
                Reservation.reservation_time == reservation_time,
                Reservation.status.in_(ACTIVE_STATUSES),
            )
        )
        return set(result.scalars().all())


async def available_tables(
    db: AsyncSession,
    reservation_date: Optional[date],
    reservation_time: Optional[str],
) -> List[Table]:
    """All tables minus the occupied ones, in catalog order"""
    snapshot = await availability_snapshot(db, reservation_date, reservation_time)
    return snapshot.available


async def availability_snapshot(
    db: AsyncSession,
    reservation_date: Optional[date],
    reservation_time: Optional[str],
) -> AvailabilitySnapshot:
    tables = await list_tables(db)
    occupied = await occupied_tables(db, reservation_date, reservation_time)
    return AvailabilitySnapshot(
        reservation_date=reservation_date,
        reservation_time=reservation_time,
        tables=tables,
        occupied=occupied,
    )
