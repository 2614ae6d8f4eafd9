"""Service test fixtures — async DB, fake reasoning, fake clock, FastAPI client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - StaticPool: every session shares the one in-memory connection
    - get_db, get_settings and get_scheduler overridden for route tests
    - Settings built explicitly: tests never depend on the caller's environment

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for service tests
      (PostgreSQL-specific features not exercised here)
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

import axle.models  # noqa: F401
from axle.config import Settings, get_settings
from axle.db.base import Base
from axle.infrastructure.database import get_db
from axle.main import app
from axle.services.scheduler_loop import SchedulerLoop, get_scheduler
from axle.services.task_store import TaskSpec, TaskStore

from tests.services.fakes import FakeClock, FakeReasoningClient


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        anthropic_api_key="sk-ant-test-fake-key",
        approval_threshold_usd=25.0,
        cost_per_call_usd=0.003,
        agent_autostart=False,
        kill_switch=False,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reasoning():
    return FakeReasoningClient()


@pytest.fixture
def store(test_db, clock):
    return TaskStore(test_db, clock)


@pytest.fixture
def make_task(store, settings):
    """Create a task through the normal creation path."""
    async def _make(**fields):
        fields.setdefault("kind", "custom")
        fields.setdefault("title", "Test task")
        return await store.create(TaskSpec(**fields), settings.approval_threshold_usd)
    return _make


@pytest.fixture
def scheduler(test_session_factory, reasoning, settings, clock):
    return SchedulerLoop(test_session_factory, reasoning, settings, clock=clock)


@pytest.fixture
async def client(test_session_factory, settings, scheduler):
    """FastAPI test client with DB, settings and scheduler overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_scheduler] = lambda: scheduler

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    scheduler.stop()
    app.dependency_overrides.clear()
