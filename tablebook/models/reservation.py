"""Reservation model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Date, DateTime, ForeignKey, Text, Index, CheckConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from tablebook.database import Base


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Active reservations hold their slot; terminal ones never do
ACTIVE_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)
TERMINAL_STATUSES = (ReservationStatus.CANCELLED.value, ReservationStatus.COMPLETED.value)

MIN_GUESTS = 1
MAX_GUESTS = 8

_ACTIVE_SLOT_PREDICATE = text("status IN ('pending', 'confirmed')")


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)  # Owner, managed by the auth service
    table_id = Column(UUID(as_uuid=True), ForeignKey("tables.id"), nullable=False)

    # Slot
    reservation_date = Column(Date, nullable=False)
    reservation_time = Column(String(5), nullable=False)  # HH:MM, one of TIME_SLOTS

    # Party
    guest_count = Column(Integer, nullable=False)
    special_requests = Column(Text)

    # Status
    status = Column(String(20), nullable=False, default=ReservationStatus.CONFIRMED.value)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    table = relationship("Table", lazy="selectin")

    __table_args__ = (
        Index(
            "uq_reservations_active_slot",
            "table_id",
            "reservation_date",
            "reservation_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_reservations_slot", "reservation_date", "reservation_time"),
        CheckConstraint(
            f"guest_count BETWEEN {MIN_GUESTS} AND {MAX_GUESTS}",
            name="ck_reservations_guest_count",
        ),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="ck_reservations_status",
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, table={self.table_id}, "
            f"slot={self.reservation_date} {self.reservation_time}, status={self.status})>"
        )
