"""Dining table model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, Enum, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID

from tablebook.database import Base


class Zone(str, enum.Enum):
    """Seating zones, in display order"""
    WINDOW_VIEW = "Window View"
    MAIN_HALL = "Main Hall"
    GARDEN_SECTION = "Garden Section"
    PRIVATE_DINING = "Private Dining"


ZONE_ORDER = list(Zone)


class Table(Base):
    """Physical tables on the floor"""
    __tablename__ = "tables"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    table_number = Column(Integer, unique=True, nullable=False)
    capacity = Column(Integer, nullable=False)  # Seats
    location = Column(
        Enum(Zone, name="table_location", values_callable=lambda zones: [z.value for z in zones]),
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_tables_capacity_positive"),
    )

    def __repr__(self) -> str:
        return f"<Table(number={self.table_number}, capacity={self.capacity}, location={self.location})>"
