"""Test configuration and fixtures"""

import os

os.environ.setdefault("REAPER_ENABLED", "false")

from datetime import datetime, timedelta
from typing import List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reservation_service.config import settings
from reservation_service.database import Base, get_db, utcnow
from reservation_service.directory.base import (
    DirectoryError,
    RestaurantDirectory,
    TableDirectory,
    UserDirectory,
)
from reservation_service.main import app
from reservation_service.models.reservation import Reservation, ReservationStatus
from reservation_service.api.reservations import (
    get_restaurant_directory,
    get_table_directory,
    get_user_directory,
)
from reservation_service.schemas.directory import RestaurantInfo, TableInfo, UserPublic
from reservation_service.services.leases import MemoryTableLeases, get_table_leases
from reservation_service.services.store import ReservationStore


class FakeTableDirectory(TableDirectory):
    def __init__(self, tables: List[TableInfo]):
        self.tables = tables
        self.fail = False

    async def list(self, restaurant_id: str) -> List[TableInfo]:
        if self.fail:
            raise DirectoryError("table service down")
        return [t for t in self.tables if t.restaurant_id == restaurant_id]


class FakeUserDirectory(UserDirectory):
    def __init__(self, users: List[UserPublic]):
        self.users = users
        self.fail = False

    async def lookup(self, ids) -> List[UserPublic]:
        if self.fail:
            raise DirectoryError("identity service down")
        return [u for u in self.users if u.id in ids]


class FakeRestaurantDirectory(RestaurantDirectory):
    def __init__(self, restaurants: List[RestaurantInfo]):
        self.restaurants = restaurants
        self.fail = False

    async def list(self) -> List[RestaurantInfo]:
        if self.fail:
            raise DirectoryError("restaurant service down")
        return list(self.restaurants)


def in_days(days: int, hour: int = 19, minute: int = 0) -> datetime:
    """Naive UTC datetime `days` from today at hour:minute"""
    base = utcnow().replace(hour=hour, minute=minute, second=0, microsecond=0)
    return base + timedelta(days=days)


def iso(value: datetime) -> str:
    return value.isoformat() + "Z"


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed SQLite so concurrent sessions get their own connections"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reservations.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(test_db):
    return ReservationStore(test_db)


@pytest.fixture
def make_reservation(test_db):
    """Insert a reservation row directly, bypassing the lifecycle rules"""
    async def _make(**fields):
        values = dict(
            user_id="user_a",
            restaurant_id="rest_001",
            guests=2,
            reserved_at=in_days(1),
            status=ReservationStatus.PENDING,
            created_at=utcnow(),
        )
        values.update(fields)
        reservation = Reservation(**values)
        test_db.add(reservation)
        await test_db.commit()
        return reservation
    return _make


@pytest.fixture
def leases():
    return MemoryTableLeases()


@pytest.fixture
def tables():
    return FakeTableDirectory([
        TableInfo(id="tbl_001", restaurant_id="rest_001", table_number="T1", capacity=2, is_active=True),
        TableInfo(id="tbl_002", restaurant_id="rest_001", table_number="T2", capacity=4, is_active=True),
        TableInfo(id="tbl_003", restaurant_id="rest_001", table_number="T3", capacity=6, is_active=False),
        TableInfo(id="tbl_004", restaurant_id="rest_001", table_number="T4", capacity=4, is_active=True),
        TableInfo(id="tbl_011", restaurant_id="rest_002", table_number="A1", capacity=4, is_active=True),
    ])


@pytest.fixture
def users():
    return FakeUserDirectory([
        UserPublic(id="user_a", full_name="Alice Perera", email="alice@example.com", phone_number="+94770000001"),
        UserPublic(id="user_b", full_name="Bimal Silva", email="bimal@example.com", phone_number="+94770000002"),
    ])


@pytest.fixture
def restaurants():
    return FakeRestaurantDirectory([
        RestaurantInfo(id="rest_001", name="Harbour Grill"),
        RestaurantInfo(id="rest_002", name="Spice Route"),
    ])


def make_token(user_id: str, roles: List[str], restaurant_id: Optional[str] = None) -> str:
    payload = {
        "sub": user_id,
        "email": f"{user_id}@example.com",
        "roles": roles,
        "restaurantId": restaurant_id,
        "exp": datetime.utcnow() + timedelta(minutes=15),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def customer_headers():
    return {"Authorization": f"Bearer {make_token('user_a', ['CUSTOMER'])}"}


@pytest.fixture
def other_customer_headers():
    return {"Authorization": f"Bearer {make_token('user_b', ['CUSTOMER'])}"}


@pytest.fixture
def staff_headers():
    return {"Authorization": f"Bearer {make_token('staff_1', ['STAFF'], 'rest_001')}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token('admin_1', ['ADMIN'])}"}


@pytest.fixture
async def client(session_factory, tables, users, restaurants, leases):
    """Create test client with overridden database and collaborators"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_table_directory] = lambda: tables
    app.dependency_overrides[get_user_directory] = lambda: users
    app.dependency_overrides[get_restaurant_directory] = lambda: restaurants
    app.dependency_overrides[get_table_leases] = lambda: leases

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
