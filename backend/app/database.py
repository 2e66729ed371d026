"""Database wiring for the project service.

Project snapshots and uploaded files share one async engine. DATABASE_URL
selects SQLite (the default, a local ``canvas.db``) or PostgreSQL; plain URLs
are rewritten to their async driver.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./canvas.db"

_ASYNC_DRIVERS: Dict[str, str] = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def async_database_url(url: str) -> str:
    """Rewrite a driverless URL to the async driver for its backend."""
    for prefix, driver in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return driver + url[len(prefix):]
    return url


DATABASE_URL = async_database_url(os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL))
IS_SQLITE = DATABASE_URL.startswith("sqlite")

engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=os.getenv("DB_ECHO", "false").lower() == "true",
    **({} if IS_SQLITE else {"pool_size": 5, "max_overflow": 10}),
)

if IS_SQLITE:
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, _connection_record):
        # Concurrent editors autosave into the same file
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()


async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def get_session_ctx() -> AsyncGenerator[AsyncSession, None]:
    """One unit of work: commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the project and file tables if they are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
