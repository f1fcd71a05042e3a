"""Table catalog and availability API endpoints"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from tablebook.database import get_db
from tablebook.errors import ValidationFailed
from tablebook.schemas.table import (
    TableResponse,
    ZoneAvailabilityResponse,
    AvailabilityResponse,
    SlotsResponse,
)
from tablebook.services import catalog
from tablebook.services.availability import availability_snapshot
from tablebook.slots import LUNCH_SLOTS, DINNER_SLOTS, is_valid_slot

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=List[TableResponse])
async def list_tables(db: AsyncSession = Depends(get_db)):
    """List all tables ordered by table number"""
    return await catalog.list_tables(db)


@router.get("/slots", response_model=SlotsResponse)
async def list_slots():
    """Bookable time slots"""
    return SlotsResponse(lunch=LUNCH_SLOTS, dinner=DINNER_SLOTS)


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    reservation_date: Optional[date] = Query(None, alias="date"),
    reservation_time: Optional[str] = Query(None, alias="time"),
    db: AsyncSession = Depends(get_db),
):
    """Occupied and available tables for a date and time slot"""
    if reservation_time is not None and not is_valid_slot(reservation_time):
        raise ValidationFailed(f"{reservation_time} is not a bookable time slot")

    snapshot = await availability_snapshot(db, reservation_date, reservation_time)

    logger.info(
        "Availability checked",
        date=str(reservation_date) if reservation_date else None,
        time=reservation_time,
        known=snapshot.known,
        occupied=len(snapshot.occupied),
    )

    available = snapshot.available
    return AvailabilityResponse(
        reservation_date=reservation_date,
        reservation_time=reservation_time,
        known=snapshot.known,
        occupied_table_ids=sorted(snapshot.occupied, key=str),
        available_table_ids=[t.id for t in available],
        total=len(snapshot.tables),
        available=len(available),
        zones=[ZoneAvailabilityResponse.model_validate(zone) for zone in snapshot.zones],
    )
