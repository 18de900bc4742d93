"""Pytest configuration and fixtures for FinDesk tests.

Tests run against in-memory SQLite (aiosqlite) with the database
dependency overridden, and fakeredis in place of a Redis server.
"""

from typing import AsyncGenerator

import fakeredis
import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from findesk.database import Base, get_db
from findesk.main import app
from findesk.models import Employee
from findesk.routers import health
from findesk.utils import cache


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Redis Fixtures ───────────────────────────────────────────────

@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    """Fresh in-process Redis server per test."""
    return fakeredis.FakeServer()


@pytest.fixture(autouse=True)
def redis_client(monkeypatch, redis_server) -> fakeredis.aioredis.FakeRedis:
    """Route the cache and the health check to a fake Redis."""
    fake = fakeredis.aioredis.FakeRedis(server=redis_server, decode_responses=True)

    async def _get_redis():
        return fake

    monkeypatch.setattr(cache, "_redis_client", fake)
    monkeypatch.setattr(cache, "get_redis", _get_redis)
    monkeypatch.setattr(health, "get_redis", _get_redis)
    return fake


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest.fixture
def actor_headers() -> dict:
    return {"X-Actor": "priya@findesk.test"}


@pytest.fixture
def invoice_payload() -> dict:
    return {
        "client_name": "Acme Corp",
        "invoice_date": "2025-12-10",
        "due_date": "2026-01-09",
        "project": "Website rebuild",
        "tasks": [
            {"task_name": "Development", "hours": 2, "rate_per_hour": 100},
            {"task_name": "QA", "hours": 3, "rate_per_hour": 50},
        ],
    }


@pytest_asyncio.fixture
async def employee(db_session: AsyncSession) -> Employee:
    emp = Employee(
        employee_code="EMP001",
        full_name="Ravi Kumar",
        email="ravi@findesk.test",
        department="Engineering",
        annual_salary=12000.0,
    )
    db_session.add(emp)
    await db_session.flush()
    return emp


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP API tests")
    config.addinivalue_line("markers", "cache: Redis cache tests")
