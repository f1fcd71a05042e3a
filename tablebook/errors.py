"""Booking errors

Every rejected operation raises one of these. ``code`` is stable and
machine-readable; ``message`` is safe to show to the diner.
"""

from typing import Optional


class ReservationError(Exception):
    """Base class for booking failures"""
    code = "reservation_error"
    default_message = "The reservation could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ReservationError):
    """Malformed or missing input"""
    code = "validation_failed"
    default_message = "Please fill in all required fields and select a table."


class SlotTaken(ReservationError):
    """Another active reservation already holds the table for this slot"""
    code = "slot_taken"
    default_message = "This table was just booked. Please choose another table or time."


class NotFound(ReservationError):
    code = "not_found"
    default_message = "Reservation not found"


class NotOwner(ReservationError):
    code = "not_owner"
    default_message = "You can only cancel your own reservations"


class AlreadyPast(ReservationError):
    code = "already_past"
    default_message = "This reservation has already taken place"


class NotCancellable(ReservationError):
    """Reservation is already in a terminal state"""
    code = "not_cancellable"
    default_message = "This reservation can no longer be cancelled"


class InvalidTransition(NotCancellable):
    """Administrative status change not allowed from the current state"""
    code = "invalid_transition"
    default_message = "This reservation cannot change to the requested status"


class StoreUnavailable(ReservationError):
    """The backing store could not be reached; safe to retry"""
    code = "store_unavailable"
    default_message = "Something went wrong. Please try again."
