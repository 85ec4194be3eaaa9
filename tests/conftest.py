"""Shared fixtures: in-memory SQLite database, fake dispatcher, pinned clock."""

import os

os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import growshare.models  # noqa: F401
from growshare.core.immutability import register_immutability_enforcement
from growshare.core.permissions import Actor, UserRole
from growshare.database import Base
from growshare.models.plot import Plot
from growshare.models.user import User
from growshare.services.booking_service import BookingService
from growshare.services.dispute_service import DisputeService

register_immutability_enforcement()

TODAY = date(2025, 5, 1)


class RecordingDispatcher:
    """Collects dispatched notices instead of enqueueing them."""

    def __init__(self) -> None:
        self.sent: list[tuple[UUID, str, dict[str, Any]]] = []
        self.fail = False

    def dispatch(self, recipient_id: UUID, template_type: str, payload: dict[str, Any]) -> bool:
        if self.fail:
            raise RuntimeError("broker unavailable")
        self.sent.append((recipient_id, template_type, payload))
        return True

    def types_for(self, recipient_id: UUID) -> list[str]:
        return [t for r, t, _ in self.sent if r == recipient_id]


class FakeClock:
    def __init__(self, today: date = TODAY) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bookings(dispatcher, clock) -> BookingService:
    return BookingService(dispatcher=dispatcher, clock=clock)


@pytest.fixture
def disputes(dispatcher) -> DisputeService:
    return DisputeService(dispatcher=dispatcher)


async def make_user(db: AsyncSession, email: str, roles: list[str], first_name: str = "Test") -> User:
    user = User(email=email, first_name=first_name, last_name="User", roles=roles)
    db.add(user)
    await db.commit()
    return user


def actor_for(user: User) -> Actor:
    return Actor(id=user.id, roles=user.role_set)


@pytest.fixture
async def owner(db) -> User:
    return await make_user(db, "owner@example.com", [UserRole.LANDOWNER.value], "Olive")


@pytest.fixture
async def renter(db) -> User:
    return await make_user(db, "renter@example.com", [UserRole.RENTER.value], "Rita")


@pytest.fixture
async def other_renter(db) -> User:
    return await make_user(db, "other@example.com", [UserRole.RENTER.value], "Oscar")


@pytest.fixture
async def admin(db) -> User:
    return await make_user(db, "admin@example.com", [UserRole.ADMIN.value], "Ada")


async def make_plot(
    db: AsyncSession,
    owner: User,
    price: str = "150",
    minimum_lease: int | None = None,
    instant_book: bool = False,
    security_deposit: str | None = None,
    title: str = "Sunny Acre",
) -> Plot:
    plot = Plot(
        owner_id=owner.id,
        title=title,
        city="Fresno",
        state="CA",
        size_acres=Decimal("1.5"),
        price_per_month=Decimal(price),
        minimum_lease=minimum_lease,
        instant_book=instant_book,
        security_deposit=Decimal(security_deposit) if security_deposit is not None else None,
    )
    db.add(plot)
    await db.commit()
    return plot


@pytest.fixture
async def plot(db, owner) -> Plot:
    return await make_plot(db, owner)
