"""Tests for creating, cancelling and completing reservations"""

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from uuid import uuid4

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from tablebook.errors import (
    AlreadyPast,
    InvalidTransition,
    NotCancellable,
    NotFound,
    NotOwner,
    SlotTaken,
    StoreUnavailable,
    ValidationFailed,
)
from tablebook.models.reservation import Reservation
from tablebook.services import lifecycle
from tablebook.services.availability import occupied_tables

from conftest import BOOKING_DATE, NOW


@pytest.mark.asyncio
async def test_table_twelve_scenario(test_db, table_ids, user_id, other_user_id):
    """Book, lose the race, cancel, and book again"""
    table_12 = table_ids[12]

    first = await lifecycle.create(test_db, user_id, table_12, BOOKING_DATE, "19:00", 2, now=NOW)
    first_id = first.id
    assert first.status == "confirmed"
    assert first.table.table_number == 12

    with pytest.raises(SlotTaken):
        await lifecycle.create(test_db, other_user_id, table_12, BOOKING_DATE, "19:00", 2, now=NOW)

    await lifecycle.cancel(test_db, first_id, user_id, NOW)
    assert table_12 not in await occupied_tables(test_db, BOOKING_DATE, "19:00")

    third = await lifecycle.create(test_db, other_user_id, table_12, BOOKING_DATE, "19:00", 3, now=NOW)
    assert third.status == "confirmed"
    assert await occupied_tables(test_db, BOOKING_DATE, "19:00") == {table_12}


@pytest.mark.asyncio
async def test_create_stores_fields(test_db, table_ids, user_id):
    """All booking fields are persisted; blank requests become null"""
    reservation = await lifecycle.create(
        test_db, user_id, table_ids[2], BOOKING_DATE, "11:30", 4, special_requests="  Window seat please ",
    )
    assert reservation.special_requests == "Window seat please"
    assert reservation.user_id == user_id
    assert reservation.created_at is not None

    quiet = await lifecycle.create(test_db, user_id, table_ids[2], BOOKING_DATE, "12:00", 1, special_requests="   ")
    assert quiet.special_requests is None


@pytest.mark.asyncio
async def test_user_may_hold_overlapping_reservations(test_db, table_ids, user_id):
    """Self double-booking on different tables is allowed"""
    await lifecycle.create(test_db, user_id, table_ids[1], BOOKING_DATE, "19:00", 2)
    await lifecycle.create(test_db, user_id, table_ids[2], BOOKING_DATE, "19:00", 2)

    assert await occupied_tables(test_db, BOOKING_DATE, "19:00") == {table_ids[1], table_ids[2]}


@pytest.mark.asyncio
@pytest.mark.parametrize("guest_count", [0, 9, -1])
async def test_guest_count_out_of_range(test_db, table_ids, user_id, guest_count):
    """Guest count must be between 1 and 8"""
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, table_ids[1], BOOKING_DATE, "19:00", guest_count)


@pytest.mark.asyncio
@pytest.mark.parametrize("slot", ["15:00", "10:30", "22:30", "19:15", "7pm"])
async def test_time_outside_slots_rejected(test_db, table_ids, user_id, slot):
    """Only the fixed lunch and dinner slots can be booked"""
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, table_ids[1], BOOKING_DATE, slot, 2)


@pytest.mark.asyncio
async def test_missing_fields_rejected(test_db, table_ids, user_id):
    """Date, time, table and user are all required"""
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, table_ids[1], None, "19:00", 2)
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, table_ids[1], BOOKING_DATE, None, 2)
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, None, BOOKING_DATE, "19:00", 2)
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, None, table_ids[1], BOOKING_DATE, "19:00", 2)


@pytest.mark.asyncio
async def test_unknown_table_rejected(test_db, table_ids, user_id):
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, uuid4(), BOOKING_DATE, "19:00", 2)


@pytest.mark.asyncio
async def test_malformed_date_rejected(test_db, table_ids, user_id):
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, table_ids[1], "2024-13-45", "19:00", 2)


@pytest.mark.asyncio
async def test_iso_date_string_accepted(test_db, table_ids, user_id):
    reservation = await lifecycle.create(test_db, user_id, table_ids[1], "2024-06-01", "19:00", 2)
    assert reservation.reservation_date == date(2024, 6, 1)


@pytest.mark.asyncio
async def test_special_requests_too_long(test_db, table_ids, user_id):
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, table_ids[1], BOOKING_DATE, "19:00", 2, special_requests="x" * 501)


@pytest.mark.asyncio
async def test_cannot_book_slot_that_started(test_db, table_ids, user_id):
    """With a clock supplied, past slots are refused"""
    with pytest.raises(ValidationFailed):
        await lifecycle.create(test_db, user_id, table_ids[1], NOW.date(), "12:00", 2, now=NOW)

    later_today = await lifecycle.create(test_db, user_id, table_ids[1], NOW.date(), "12:30", 2, now=NOW)
    assert later_today.status == "confirmed"


@pytest.mark.asyncio
async def test_cancel_sets_cancelled(test_db, table_ids, user_id):
    reservation = await lifecycle.create(test_db, user_id, table_ids[5], BOOKING_DATE, "18:00", 2)

    cancelled = await lifecycle.cancel(test_db, reservation.id, user_id, NOW)

    assert cancelled.status == "cancelled"
    assert cancelled.updated_at is not None


@pytest.mark.asyncio
async def test_cancel_twice_is_rejected(test_db, table_ids, user_id):
    """A second cancel does not silently succeed"""
    reservation = await lifecycle.create(test_db, user_id, table_ids[5], BOOKING_DATE, "18:00", 2)
    reservation_id = reservation.id
    await lifecycle.cancel(test_db, reservation_id, user_id, NOW)

    with pytest.raises(NotCancellable):
        await lifecycle.cancel(test_db, reservation_id, user_id, NOW)


@pytest.mark.asyncio
async def test_cancel_requires_owner(test_db, table_ids, user_id, other_user_id):
    reservation = await lifecycle.create(test_db, user_id, table_ids[5], BOOKING_DATE, "18:00", 2)

    with pytest.raises(NotOwner):
        await lifecycle.cancel(test_db, reservation.id, other_user_id, NOW)

    assert reservation.status == "confirmed"


@pytest.mark.asyncio
async def test_cancel_unknown_reservation(test_db, table_ids, user_id):
    with pytest.raises(NotFound):
        await lifecycle.cancel(test_db, uuid4(), user_id, NOW)
    with pytest.raises(NotFound):
        await lifecycle.cancel(test_db, "not-a-uuid", user_id, NOW)


@pytest.mark.asyncio
async def test_cancel_past_reservation_blocked(test_db, table_ids, user_id, add_reservation):
    """No retroactive cancellation"""
    reservation_id = await add_reservation(user_id, table_ids[7], date(2024, 4, 20), "19:00")

    with pytest.raises(AlreadyPast):
        await lifecycle.cancel(test_db, reservation_id, user_id, NOW)


@pytest.mark.asyncio
async def test_cancel_completed_is_rejected(test_db, table_ids, user_id, add_reservation):
    reservation_id = await add_reservation(user_id, table_ids[7], BOOKING_DATE, "19:00", status="completed")

    with pytest.raises(NotCancellable):
        await lifecycle.cancel(test_db, reservation_id, user_id, NOW)


@pytest.mark.asyncio
async def test_cancelled_stays_cancelled(test_db, table_ids, user_id, other_user_id):
    """Rebooking the slot does not revive the cancelled reservation"""
    reservation = await lifecycle.create(test_db, user_id, table_ids[12], BOOKING_DATE, "19:00", 2)
    reservation_id = reservation.id
    await lifecycle.cancel(test_db, reservation_id, user_id, NOW)

    await lifecycle.create(test_db, other_user_id, table_ids[12], BOOKING_DATE, "19:00", 2)
    with pytest.raises(NotCancellable):
        await lifecycle.cancel(test_db, reservation_id, user_id, NOW)
    with pytest.raises(InvalidTransition):
        await lifecycle.complete(test_db, reservation_id, datetime(2024, 6, 2))

    stored = await test_db.get(Reservation, reservation_id)
    await test_db.refresh(stored)
    assert stored.status == "cancelled"


@pytest.mark.asyncio
async def test_complete_after_slot(test_db, table_ids, user_id):
    """Completion is allowed once the slot has started"""
    reservation = await lifecycle.create(test_db, user_id, table_ids[20], BOOKING_DATE, "19:00", 6)
    reservation_id = reservation.id

    with pytest.raises(ValidationFailed):
        await lifecycle.complete(test_db, reservation_id, NOW)

    completed = await lifecycle.complete(test_db, reservation_id, datetime(2024, 6, 1, 21, 0))
    assert completed.status == "completed"
    assert await occupied_tables(test_db, BOOKING_DATE, "19:00") == set()


@pytest.mark.asyncio
async def test_list_for_user_newest_first(test_db, table_ids, user_id, other_user_id, add_reservation):
    await add_reservation(user_id, table_ids[1], date(2024, 6, 1), "12:00")
    await add_reservation(user_id, table_ids[1], date(2024, 6, 1), "19:00")
    await add_reservation(user_id, table_ids[2], date(2024, 7, 1), "11:00")
    await add_reservation(other_user_id, table_ids[5], date(2024, 8, 1), "11:00")

    reservations = await lifecycle.list_for_user(test_db, user_id)

    assert [(r.reservation_date, r.reservation_time) for r in reservations] == [
        (date(2024, 7, 1), "11:00"),
        (date(2024, 6, 1), "19:00"),
        (date(2024, 6, 1), "12:00"),
    ]


@pytest.mark.asyncio
async def test_next_upcoming(test_db, table_ids, user_id, add_reservation):
    """Only active, not-yet-started reservations, soonest first, limited"""
    await add_reservation(user_id, table_ids[1], NOW.date(), "11:30")  # already started
    await add_reservation(user_id, table_ids[1], NOW.date(), "18:00")
    await add_reservation(user_id, table_ids[2], date(2024, 5, 3), "12:00", status="cancelled")
    await add_reservation(user_id, table_ids[2], date(2024, 5, 2), "19:00")
    await add_reservation(user_id, table_ids[5], date(2024, 5, 10), "13:00", status="pending")
    await add_reservation(user_id, table_ids[7], date(2024, 5, 20), "13:00")

    upcoming = await lifecycle.next_upcoming(test_db, user_id, NOW, limit=3)

    assert [(r.reservation_date, r.reservation_time) for r in upcoming] == [
        (NOW.date(), "18:00"),
        (date(2024, 5, 2), "19:00"),
        (date(2024, 5, 10), "13:00"),
    ]


class _BrokenSession:
    """Session stand-in whose store is unreachable"""

    async def get(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, ConnectionRefusedError("connection refused"))

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, ConnectionRefusedError("connection refused"))


@pytest.mark.asyncio
async def test_store_failures_surface_as_unavailable(user_id):
    session = _BrokenSession()

    with pytest.raises(StoreUnavailable):
        await lifecycle.create(session, user_id, uuid4(), BOOKING_DATE, "19:00", 2)
    with pytest.raises(StoreUnavailable):
        await lifecycle.cancel(session, uuid4(), user_id, NOW)
    with pytest.raises(StoreUnavailable):
        await occupied_tables(session, BOOKING_DATE, "19:00")


@contextmanager
def failing_statements(session, prefix):
    """Make the store reject every statement starting with prefix"""
    engine = session.bind.sync_engine

    def refuse(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith(prefix):
            raise sqlite3.OperationalError("disk I/O error")

    event.listen(engine, "before_cursor_execute", refuse)
    try:
        yield
    finally:
        event.remove(engine, "before_cursor_execute", refuse)


@pytest.mark.asyncio
async def test_failed_insert_leaves_session_usable(test_db, table_ids, user_id):
    """A commit-time outage is retryable on the same session"""
    table_1 = table_ids[1]

    with failing_statements(test_db, "INSERT INTO RESERVATIONS"):
        with pytest.raises(StoreUnavailable):
            await lifecycle.create(test_db, user_id, table_1, BOOKING_DATE, "19:00", 2, now=NOW)

    assert await occupied_tables(test_db, BOOKING_DATE, "19:00") == set()

    reservation = await lifecycle.create(test_db, user_id, table_1, BOOKING_DATE, "19:00", 2, now=NOW)
    assert reservation.status == "confirmed"
    assert await occupied_tables(test_db, BOOKING_DATE, "19:00") == {table_1}


@pytest.mark.asyncio
async def test_failed_cancel_can_be_retried(test_db, table_ids, user_id):
    reservation = await lifecycle.create(test_db, user_id, table_ids[1], BOOKING_DATE, "19:00", 2, now=NOW)
    reservation_id = reservation.id

    with failing_statements(test_db, "UPDATE RESERVATIONS"):
        with pytest.raises(StoreUnavailable):
            await lifecycle.cancel(test_db, reservation_id, user_id, NOW)

    assert await occupied_tables(test_db, BOOKING_DATE, "19:00") == {table_ids[1]}

    cancelled = await lifecycle.cancel(test_db, reservation_id, user_id, NOW)
    assert cancelled.status == "cancelled"
    assert await occupied_tables(test_db, BOOKING_DATE, "19:00") == set()
