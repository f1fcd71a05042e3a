"""Test configuration and fixtures"""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from tablebook.main import app
from tablebook.config import settings
from tablebook.database import Base, get_db
from tablebook.api.deps import get_now
from tablebook.models.table import Table, Zone
from tablebook.models.reservation import Reservation


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed wall clock for every test
NOW = datetime(2024, 5, 1, 12, 0)
BOOKING_DATE = date(2024, 6, 1)

FLOOR = [
    (1, 2, Zone.WINDOW_VIEW),
    (2, 4, Zone.WINDOW_VIEW),
    (5, 6, Zone.MAIN_HALL),
    (7, 8, Zone.MAIN_HALL),
    (12, 4, Zone.GARDEN_SECTION),
    (20, 8, Zone.PRIVATE_DINING),
]


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def table_ids(test_db):
    """Seed the floor and return table ids keyed by table number"""
    tables = [
        Table(id=uuid4(), table_number=number, capacity=capacity, location=zone)
        for number, capacity, zone in FLOOR
    ]
    # Insert out of order so catalog ordering is actually exercised
    for table in reversed(tables):
        test_db.add(table)
    await test_db.commit()

    return {table.table_number: table.id for table in tables}


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def other_user_id():
    return uuid4()


@pytest.fixture
def add_reservation(test_db):
    """Insert a reservation row directly, bypassing the lifecycle checks"""
    async def _add(user_id, table_id, reservation_date, reservation_time, status="confirmed", guest_count=2):
        reservation = Reservation(
            id=uuid4(),
            user_id=user_id,
            table_id=table_id,
            reservation_date=reservation_date,
            reservation_time=reservation_time,
            guest_count=guest_count,
            status=status,
        )
        test_db.add(reservation)
        await test_db.commit()
        return reservation.id

    return _add


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database and clock"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def create_access_token(user_id, expires_minutes=15):
    """Mint an access token the way the auth service signs them"""
    payload = {
        "sub": str(user_id),
        "exp": datetime.utcnow() + timedelta(minutes=expires_minutes),
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
