"""Translation of storage failures into booking errors"""

from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator

from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.errors import StoreUnavailable

SLOT_INDEX_NAME = "uq_reservations_active_slot"

_UNAVAILABLE = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    ConnectionError,
)


@contextmanager
def store_errors() -> Iterator[None]:
    """Surface infrastructure failures as StoreUnavailable"""
    try:
        yield
    except _UNAVAILABLE as exc:
        raise StoreUnavailable() from exc


@asynccontextmanager
async def write_errors(db: AsyncSession) -> AsyncIterator[None]:
    """
    Like store_errors, for blocks that write.

    A failed flush or commit leaves the session waiting for a rollback, so
    it is rolled back here and the same session stays usable for a retry.
    """
    try:
        yield
    except _UNAVAILABLE as exc:
        with store_errors():
            await db.rollback()
        raise StoreUnavailable() from exc


def is_slot_conflict(exc: IntegrityError) -> bool:
    """True when the active-slot unique index rejected the write"""
    detail = str(exc.orig)
    return SLOT_INDEX_NAME in detail or "UNIQUE constraint failed: reservations." in detail
