"""Root conftest for API and repository tests.

Provides:
- In-memory SQLite database (replaces production engine)
- httpx AsyncClient bound to the FastAPI app through ASGITransport
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import app.database as db_module
import app.event_bus as event_bus_module
from app.database import Base

# Import all ORM models so they register with Base.metadata
import app.models.db  # noqa: F401


# ---------------------------------------------------------------------------
# In-memory async SQLite engine (StaticPool shares one connection)
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite engine per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Per-test database session with automatic rollback."""
    factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_db(test_engine: AsyncEngine) -> AsyncGenerator[AsyncEngine, None]:
    """Point app.database at the test engine so get_session_ctx() uses it."""
    original_engine = db_module.engine
    original_factory = db_module.async_session_factory

    db_module.engine = test_engine
    db_module.async_session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    # Fresh event bus per test
    event_bus_module._bus = None
    try:
        yield test_engine
    finally:
        db_module.engine = original_engine
        db_module.async_session_factory = original_factory
        event_bus_module._bus = None


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(test_db: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI routes against the test DB."""
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
