"""Reservation API endpoints"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from tablebook.api.auth import get_current_user_id
from tablebook.api.deps import get_now
from tablebook.config import settings
from tablebook.database import get_db
from tablebook.models.reservation import Reservation
from tablebook.schemas.reservation import (
    ReservationCreate,
    ReservationResponse,
    ReservationListResponse,
    ReservationSummaryResponse,
    ErrorResponse,
)
from tablebook.services import classifier, lifecycle

router = APIRouter()
logger = structlog.get_logger()


def _to_response(reservation: Reservation, now: datetime) -> ReservationResponse:
    response = ReservationResponse.model_validate(reservation)
    response.is_past = classifier.is_past(reservation, now)
    response.can_cancel = classifier.can_cancel(reservation, now)
    return response


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_reservation(
    reservation_data: ReservationCreate,
    user_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    """Book a table"""
    reservation = await lifecycle.create(
        db,
        user_id=user_id,
        table_id=reservation_data.table_id,
        reservation_date=reservation_data.reservation_date,
        reservation_time=reservation_data.reservation_time,
        guest_count=reservation_data.guest_count,
        special_requests=reservation_data.special_requests,
        now=now,
    )

    logger.info(
        "Reservation created",
        reservation_id=str(reservation.id),
        user_id=str(user_id),
        table_id=str(reservation.table_id),
        date=str(reservation.reservation_date),
        time=reservation.reservation_time,
        guest_count=reservation.guest_count,
    )

    return _to_response(reservation, now)


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    user_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's reservations split into upcoming and past"""
    reservations = await lifecycle.list_for_user(db, user_id)
    upcoming, past = classifier.partition(reservations, now)

    return ReservationListResponse(
        total=len(reservations),
        upcoming=[_to_response(r, now) for r in upcoming],
        past=[_to_response(r, now) for r in past],
    )


@router.get("/summary", response_model=ReservationSummaryResponse)
async def get_summary(
    user_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard counters plus the next few upcoming bookings"""
    reservations = await lifecycle.list_for_user(db, user_id)
    summary = classifier.summarize(reservations, now)
    next_up = await lifecycle.next_upcoming(
        db, user_id, now, limit=settings.upcoming_preview_limit
    )

    return ReservationSummaryResponse(
        total=summary.total,
        upcoming_count=summary.upcoming_count,
        completed_count=summary.completed_count,
        next_up=[_to_response(r, now) for r in next_up],
    )


@router.post(
    "/{reservation_id}/cancel",
    response_model=ReservationResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_reservation(
    reservation_id: str,
    user_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: AsyncSession = Depends(get_db),
):
    """Cancel one of the current user's reservations"""
    reservation = await lifecycle.cancel(db, reservation_id, user_id, now)

    logger.info(
        "Reservation cancelled",
        reservation_id=str(reservation.id),
        user_id=str(user_id),
        table_id=str(reservation.table_id),
    )

    return _to_response(reservation, now)
