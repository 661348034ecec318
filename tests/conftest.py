import pytest
from datetime import datetime
from typing import AsyncGenerator

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from urgeguard import models  # noqa: F401
from urgeguard.api.deps import get_recorder, get_risk_engine
from urgeguard.main import app
from urgeguard.services.engine import RiskEngine
from urgeguard.store import EventRecorder, EventStore
from tests.fixtures import FakeClock

# in-memory test db; StaticPool keeps every session on the same connection
TEST_DB_URL = "sqlite+aiosqlite://"

# Monday, mid-afternoon
NOW = datetime(2026, 10, 19, 14, 20)


def _engine() -> AsyncEngine:
    return create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


def _factory(engine: AsyncEngine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = _engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def empty_engine() -> AsyncGenerator[AsyncEngine, None]:
    """A database with no tables at all: every query fails."""
    engine = _engine()
    yield engine
    await engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def store(db_engine) -> EventStore:
    return EventStore(_factory(db_engine))


@pytest.fixture
def broken_store(empty_engine) -> EventStore:
    return EventStore(_factory(empty_engine))


@pytest.fixture
def recorder(db_engine, clock) -> EventRecorder:
    return EventRecorder(_factory(db_engine), clock=clock)


@pytest.fixture
def risk_engine(store, clock) -> RiskEngine:
    return RiskEngine(store, clock=clock)


@pytest.fixture
async def client(risk_engine, recorder) -> AsyncGenerator[httpx.AsyncClient, None]:
    app.dependency_overrides[get_risk_engine] = lambda: risk_engine
    app.dependency_overrides[get_recorder] = lambda: recorder
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
