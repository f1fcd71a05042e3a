"""Reservation lifecycle: create, cancel, complete and owner queries

The one-active-reservation-per-table-per-slot rule is enforced by the
``uq_reservations_active_slot`` partial unique index. ``create`` never
checks availability first: it inserts and lets the index decide, so two
callers racing for the same slot cannot both win, even from separate
processes.
"""

from datetime import date, datetime
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tablebook.config import settings
from tablebook.errors import (
    AlreadyPast,
    InvalidTransition,
    NotCancellable,
    NotFound,
    NotOwner,
    SlotTaken,
    ValidationFailed,
)
from tablebook.models.reservation import (
    Reservation,
    ReservationStatus,
    ACTIVE_STATUSES,
    MIN_GUESTS,
    MAX_GUESTS,
)
from tablebook.services.catalog import get_table
from tablebook.services.classifier import slot_start
from tablebook.services.store import is_slot_conflict, store_errors, write_errors
from tablebook.slots import combine, is_valid_slot


def _as_uuid(value: Union[UUID, str, None], field: str) -> UUID:
    if value is None or value == "":
        raise ValidationFailed(f"{field} is required")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationFailed(f"{field} is not a valid identifier")


def _as_date(value: Union[date, str, None]) -> date:
    if value is None or value == "":
        raise ValidationFailed("Please select a date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationFailed(f"{value} is not a valid date")


def _clean_requests(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > settings.max_special_requests_length:
        raise ValidationFailed(
            f"Special requests must be at most {settings.max_special_requests_length} characters"
        )
    return value


async def create(
    db: AsyncSession,
    user_id: Union[UUID, str, None],
    table_id: Union[UUID, str, None],
    reservation_date: Union[date, str, None],
    reservation_time: Optional[str],
    guest_count: Optional[int],
    special_requests: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """
    Book a table for a slot.

    The new reservation is ``confirmed``. When ``now`` is given, slots that
    have already started are refused.
    """
    owner = _as_uuid(user_id, "user_id")
    table_key = _as_uuid(table_id, "table_id")
    day = _as_date(reservation_date)

    if not reservation_time:
        raise ValidationFailed("Please select a time slot")
    if not is_valid_slot(reservation_time):
        raise ValidationFailed(f"{reservation_time} is not a bookable time slot")

    if isinstance(guest_count, bool) or not isinstance(guest_count, int):
        raise ValidationFailed("Guest count must be a whole number")
    if not MIN_GUESTS <= guest_count <= MAX_GUESTS:
        raise ValidationFailed(f"Guest count must be between {MIN_GUESTS} and {MAX_GUESTS}")

    requests = _clean_requests(special_requests)

    if now is not None and combine(day, reservation_time) <= now:
        raise ValidationFailed("Reservations cannot be made for a time that has already passed")

    table = await get_table(db, table_key)
    if table is None:
        raise ValidationFailed("Selected table does not exist")

    reservation = Reservation(
        user_id=owner,
        table_id=table.id,
        table=table,
        reservation_date=day,
        reservation_time=reservation_time,
        guest_count=guest_count,
        special_requests=requests,
        status=ReservationStatus.CONFIRMED.value,
    )
    db.add(reservation)

    async with write_errors(db):
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            if is_slot_conflict(exc):
                raise SlotTaken() from exc
            raise ValidationFailed() from exc

    return reservation


async def _load(db: AsyncSession, reservation_id: Union[UUID, str, None]) -> Reservation:
    try:
        key = _as_uuid(reservation_id, "reservation_id")
    except ValidationFailed:
        raise NotFound()
    with store_errors():
        result = await db.execute(
            select(Reservation)
            .where(Reservation.id == key)
            .options(selectinload(Reservation.table))
            .execution_options(populate_existing=True)
        )
        reservation = result.scalar_one_or_none()
    if reservation is None:
        raise NotFound()
    return reservation


async def _transition(
    db: AsyncSession,
    reservation: Reservation,
    target: ReservationStatus,
    rejection: type,
) -> Reservation:
    # Conditional on the row still being active, so a concurrent
    # transition cannot be overwritten.
    async with write_errors(db):
        result = await db.execute(
            update(Reservation)
            .where(
                Reservation.id == reservation.id,
                Reservation.status.in_(ACTIVE_STATUSES),
            )
            .values(status=target.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise rejection()
        await db.commit()
        await db.refresh(reservation, attribute_names=["status", "updated_at"])
    return reservation


async def cancel(
    db: AsyncSession,
    reservation_id: Union[UUID, str, None],
    requesting_user_id: Union[UUID, str, None],
    now: datetime,
) -> Reservation:
    """
    Cancel an active reservation on behalf of its owner.

    Cancelling is irreversible. A reservation that is already cancelled or
    completed raises NotCancellable rather than succeeding silently.
    """
    reservation = await _load(db, reservation_id)

    try:
        requester = _as_uuid(requesting_user_id, "user_id")
    except ValidationFailed:
        raise NotOwner()
    if reservation.user_id != requester:
        raise NotOwner()

    if reservation.status not in ACTIVE_STATUSES:
        raise NotCancellable(f"This reservation is already {reservation.status}")
    if now >= slot_start(reservation):
        raise AlreadyPast()

    return await _transition(db, reservation, ReservationStatus.CANCELLED, NotCancellable)


async def complete(
    db: AsyncSession,
    reservation_id: Union[UUID, str, None],
    now: datetime,
) -> Reservation:
    """Mark a seated reservation as completed (administrative, out-of-band)"""
    reservation = await _load(db, reservation_id)

    if reservation.status not in ACTIVE_STATUSES:
        raise InvalidTransition(f"This reservation is already {reservation.status}")
    if now < slot_start(reservation):
        raise ValidationFailed("A reservation cannot be completed before its time slot")

    return await _transition(db, reservation, ReservationStatus.COMPLETED, InvalidTransition)


async def list_for_user(db: AsyncSession, user_id: UUID) -> List[Reservation]:
    """All of a user's reservations, newest slot first"""
    with store_errors():
        result = await db.execute(
            select(Reservation)
            .where(Reservation.user_id == user_id)
            .options(selectinload(Reservation.table))
            .order_by(
                Reservation.reservation_date.desc(),
                Reservation.reservation_time.desc(),
            )
        )
        return list(result.scalars().all())


async def next_upcoming(
    db: AsyncSession,
    user_id: UUID,
    now: datetime,
    limit: int = 3,
) -> List[Reservation]:
    """The user's next active reservations that have not started yet"""
    today = now.date()
    # Zero-padded HH:MM labels sort chronologically as text
    current = now.strftime("%H:%M")
    with store_errors():
        result = await db.execute(
            select(Reservation)
            .where(
                Reservation.user_id == user_id,
                Reservation.status.in_(ACTIVE_STATUSES),
                or_(
                    Reservation.reservation_date > today,
                    and_(
                        Reservation.reservation_date == today,
                        Reservation.reservation_time > current,
                    ),
                ),
            )
            .order_by(
                Reservation.reservation_date.asc(),
                Reservation.reservation_time.asc(),
            )
            .limit(limit)
            .options(selectinload(Reservation.table))
        )
        return list(result.scalars().all())
