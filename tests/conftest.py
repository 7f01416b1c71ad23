"""Shared pytest fixtures and configuration.

This module provides common fixtures used across all test types.
"""

import os

# Settings are read at import time, so they must be in place before barberbook is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

# Import models to register them with Base.metadata
from barberbook.models import appointment, shop, user  # noqa: E402, F401
from barberbook.auth.tokens import CurrentUser  # noqa: E402
from barberbook.models.base import Base  # noqa: E402
from barberbook.models.shop import ScheduleDB, ServiceDB, ShopDB  # noqa: E402
from barberbook.models.user import UserDB, UserRole  # noqa: E402


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis the app uses.

    TTLs are recorded but never expire on their own.
    """

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def getdel(self, key: str) -> str | None:
        self.ttls.pop(key, None)
        return self.store.pop(key, None)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def incr(self, key: str) -> int:
        value = int(self.store.get(key, "0")) + 1
        self.store[key] = str(value)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        self.ttls[key] = seconds
        return key in self.store

    async def ttl(self, key: str) -> int:
        if key not in self.store:
            return -2
        return self.ttls.get(key, -1)

    async def ping(self) -> bool:
        return True


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Provide an empty in-memory Redis replacement."""
    return FakeRedis()


@pytest.fixture
def test_database_url(tmp_path) -> str:
    """Provide test database URL.

    Uses a file-based SQLite database per test, or PostgreSQL if configured.
    """
    db_url = os.getenv("TEST_DATABASE_URL")
    if db_url:
        return db_url
    return f"sqlite+aiosqlite:///{tmp_path}/test_barberbook.db"


@pytest.fixture
async def db_engine(test_database_url: str):
    """Provide an async engine with all tables created, dropped afterwards."""
    engine = create_async_engine(test_database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session for testing."""
    async with session_factory() as session:
        yield session


def as_current_user(row: UserDB) -> CurrentUser:
    return CurrentUser(id=row.id, email=row.email, role=row.role)


@pytest.fixture
def identity():
    """Provide a converter from a UserDB row to the token identity used by services."""
    return as_current_user


async def create_user(
    session: AsyncSession, role: UserRole = UserRole.CUSTOMER, email: str | None = None
) -> UserDB:
    row = UserDB(
        id=uuid.uuid4(),
        email=email or f"{uuid.uuid4().hex[:8]}@example.com",
        password_hash="not-a-real-hash",
        first_name="Test",
        last_name="User",
        role=role.value,
    )
    session.add(row)
    await session.commit()
    return row


@pytest.fixture
def make_user(async_db_session: AsyncSession):
    """Provide a factory creating users in the test database."""

    async def factory(role: UserRole = UserRole.CUSTOMER, email: str | None = None) -> UserDB:
        return await create_user(async_db_session, role, email)

    return factory


@pytest.fixture
async def barber(async_db_session: AsyncSession) -> UserDB:
    return await create_user(async_db_session, UserRole.BARBER, "barber@example.com")


@pytest.fixture
async def customer(async_db_session: AsyncSession) -> UserDB:
    return await create_user(async_db_session, UserRole.CUSTOMER, "customer@example.com")


@pytest.fixture
async def shop_setup(async_db_session: AsyncSession, barber: UserDB) -> dict:
    """A UTC shop open Monday 09:00-12:00 and 13:00-17:00 with a 30 minute haircut."""
    shop_row = ShopDB(
        id=uuid.uuid4(),
        owner_id=barber.id,
        name="Sharp Cuts",
        slug="sharp-cuts",
        timezone="UTC",
        is_active=True,
    )
    async_db_session.add(shop_row)
    haircut = ServiceDB(
        id=uuid.uuid4(),
        shop_id=shop_row.id,
        name="Haircut",
        duration_minutes=30,
        price=Decimal("25.00"),
        is_active=True,
    )
    async_db_session.add(haircut)
    async_db_session.add_all(
        [
            ScheduleDB(id=uuid.uuid4(), shop_id=shop_row.id, day_of_week=1, open_time="09:00", close_time="12:00"),
            ScheduleDB(id=uuid.uuid4(), shop_id=shop_row.id, day_of_week=1, open_time="13:00", close_time="17:00"),
        ]
    )
    await async_db_session.commit()
    return {"shop": shop_row, "service": haircut}
