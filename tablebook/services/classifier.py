"""Temporal classification of reservations

Everything here is a pure function of the reservation and an explicit
``now`` (naive local restaurant time). Pastness is computed on read and
never written back to the status column.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Tuple

from tablebook.models.reservation import Reservation, ReservationStatus, TERMINAL_STATUSES
from tablebook.slots import combine


class Timing(str, enum.Enum):
    UPCOMING = "upcoming"
    PAST = "past"


@dataclass(frozen=True)
class ReservationSummary:
    """Dashboard counters"""
    total: int
    upcoming_count: int
    completed_count: int


def slot_start(reservation: Reservation) -> datetime:
    return combine(reservation.reservation_date, reservation.reservation_time)


def is_past(reservation: Reservation, now: datetime) -> bool:
    """
    A reservation is past once its slot has started, or as soon as it is
    cancelled or completed, whatever its scheduled time.
    """
    return now >= slot_start(reservation) or reservation.status in TERMINAL_STATUSES


def classify(reservation: Reservation, now: datetime) -> Timing:
    return Timing.PAST if is_past(reservation, now) else Timing.UPCOMING


def can_cancel(reservation: Reservation, now: datetime) -> bool:
    """Whether the owner may still cancel"""
    return reservation.is_active and now < slot_start(reservation)


def partition(
    reservations: Iterable[Reservation], now: datetime
) -> Tuple[List[Reservation], List[Reservation]]:
    """Split into (upcoming, past), keeping the input order"""
    upcoming, past = [], []
    for reservation in reservations:
        (past if is_past(reservation, now) else upcoming).append(reservation)
    return upcoming, past


def summarize(reservations: Iterable[Reservation], now: datetime) -> ReservationSummary:
    total = 0
    upcoming_count = 0
    completed_count = 0
    for reservation in reservations:
        total += 1
        if slot_start(reservation) > now and reservation.status != ReservationStatus.CANCELLED:
            upcoming_count += 1
        # Completion is a persisted fact, never inferred from the clock
        if reservation.status == ReservationStatus.COMPLETED:
            completed_count += 1
    return ReservationSummary(
        total=total,
        upcoming_count=upcoming_count,
        completed_count=completed_count,
    )
