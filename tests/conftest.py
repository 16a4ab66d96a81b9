"""
Shared test fixtures for the attendance engine test suite.

Async throughout (aiosqlite + AsyncSession). Pure computation tests need no
fixtures; API tests request ``async_client`` and ``db_session``, which
create the schema on a fresh in-memory database.
"""

import os
import sys
from datetime import date, datetime, time
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
# Use async sqlite driver
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["TIMEZONE_OFFSET"] = "+00:00"

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from attendance_engine.api.v1.deps import get_db
from attendance_engine.db.base import Base
from attendance_engine.main import app
from attendance_engine.models.employee import Employee, PunchEvent
from attendance_engine.models.holiday import Holiday
from attendance_engine.models.leave import Leave, LeaveType
from attendance_engine.services.records import Punch

# The application engine is created at import time; tests use a separate
# engine and override the dependency.
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def async_client(setup_db) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(setup_db) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


# ── Builders ────────────────────────────────────────────────────────
def at(day: date, hh: int, mm: int = 0) -> datetime:
    return datetime.combine(day, time(hh, mm))


def punch(day: date, start: tuple[int, int], end: tuple[int, int] | None = None, employee_id: int = 1) -> Punch:
    """Build a ``Punch`` from (hour, minute) pairs on ``day``."""
    return Punch(
        employee_id=employee_id,
        date=day,
        punch_in=at(day, *start),
        punch_out=at(day, *end) if end else None,
    )


async def add_employee(db: AsyncSession, name: str, **kwargs) -> Employee:
    emp = Employee(name=name, **kwargs)
    db.add(emp)
    await db.commit()
    await db.refresh(emp)
    return emp


async def add_punch(
    db: AsyncSession,
    employee_id: int,
    punch_in: datetime,
    punch_out: datetime | None = None,
) -> PunchEvent:
    event = PunchEvent(
        employee_id=employee_id,
        date=punch_in.date(),
        punch_in=punch_in,
        punch_out=punch_out,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def add_leave(
    db: AsyncSession,
    employee_id: int,
    from_date: date,
    to_date: date,
    type_name: str = "Casual Leave",
    symbol: str | None = "CL",
    status: str = "approved",
) -> Leave:
    result = await db.execute(select(LeaveType).where(LeaveType.name == type_name))
    lt = result.scalar_one_or_none()
    if lt is None:
        lt = LeaveType(name=type_name, symbol=symbol, days=12)
        db.add(lt)
        await db.flush()
    leave = Leave(
        employee_id=employee_id,
        leave_type_id=lt.id,
        from_date=from_date,
        to_date=to_date,
        status=status,
    )
    db.add(leave)
    await db.commit()
    await db.refresh(leave)
    return leave


async def add_holiday(db: AsyncSession, title: str, from_date: date, to_date: date) -> Holiday:
    holiday = Holiday(title=title, from_date=from_date, to_date=to_date)
    db.add(holiday)
    await db.commit()
    return holiday
