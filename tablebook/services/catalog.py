"""Table catalog: the read-only list of physical tables"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.models.table import Table, ZONE_ORDER
from tablebook.services.store import store_errors


@dataclass(frozen=True)
class ZoneAvailability:
    """Per-zone table counts for one slot"""
    location: str
    count: int
    available: int
    min_capacity: int
    max_capacity: int


async def list_tables(db: AsyncSession) -> List[Table]:
    """All tables, ascending by table number"""
    with store_errors():
        result = await db.execute(select(Table).order_by(Table.table_number))
        return list(result.scalars().all())


async def get_table(db: AsyncSession, table_id: UUID) -> Optional[Table]:
    with store_errors():
        return await db.get(Table, table_id)


def zone_breakdown(tables: Iterable[Table], occupied: Set[UUID]) -> List[ZoneAvailability]:
    """
    Group tables by zone in display order.

    Zones without tables are left out. ``occupied`` is the set returned by
    the availability resolver; pass an empty set when the slot is unknown.
    """
    by_zone = {}
    for table in tables:
        by_zone.setdefault(table.location, []).append(table)

    breakdown = []
    for zone in ZONE_ORDER:
        zone_tables = by_zone.get(zone, [])
        if not zone_tables:
            continue
        capacities = [t.capacity for t in zone_tables]
        breakdown.append(
            ZoneAvailability(
                location=zone.value,
                count=len(zone_tables),
                available=sum(1 for t in zone_tables if t.id not in occupied),
                min_capacity=min(capacities),
                max_capacity=max(capacities),
            )
        )
    return breakdown
