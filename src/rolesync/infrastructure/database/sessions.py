"""Database session management.

Provides the write engine (profile writes, liveness checks) and a read
session factory for claims lookups and drift reports.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_read_engine, create_write_engine
from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings

# Module-level probe for observability
_probe = DefaultConnectionProbe()

# Module-level engine instances (created on first use)
_write_engine: AsyncEngine | None = None
_read_engine: AsyncEngine | None = None

# Module-level sessionmaker (created with the read engine)
_read_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def get_write_engine() -> AsyncEngine:
    """Get the write database engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.

    Returns:
        Configured async engine for write operations
    """
    global _write_engine
    if _write_engine is None:
        with _engine_lock:
            # Double-check after acquiring lock
            if _write_engine is None:
                settings = get_database_settings()
                _write_engine = create_write_engine(settings)
                _probe.engine_created("write", settings.connection_string)
    return _write_engine


def get_read_engine() -> AsyncEngine:
    """Get the read database engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.

    Returns:
        Configured async engine for read operations
    """
    global _read_engine, _read_sessionmaker
    if _read_engine is None:
        with _engine_lock:
            if _read_engine is None:
                settings = get_database_settings()
                _read_engine = create_read_engine(settings)
                _read_sessionmaker = async_sessionmaker(
                    _read_engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
                _probe.engine_created("read", settings.connection_string)
    return _read_engine


@asynccontextmanager
async def get_read_session() -> AsyncIterator[AsyncSession]:
    """Provide a read-only session for queries.

    The session uses the read engine. While not enforced at the database level
    (requires database role permissions), application code should use this
    session only for read operations.

    Yields:
        AsyncSession for read-only database operations
    """
    get_read_engine()
    assert _read_sessionmaker is not None

    async with _read_sessionmaker() as session:
        yield session


async def verify_connection(engine: AsyncEngine) -> None:
    """Run a liveness query against the engine.

    Raises:
        DatabaseConnectionError: If the database cannot be reached.
    """
    connection_string = get_database_settings().connection_string
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OperationalError, DBAPIError, OSError) as e:
        _probe.connection_failed(connection_string, e)
        raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e
    _probe.connection_verified(connection_string)


async def close_database_connections() -> None:
    """Close all database engine connections.

    Should be called on shutdown to properly cleanup connections.
    Also resets sessionmakers to allow reinitialization.
    """
    global _write_engine, _read_engine, _read_sessionmaker

    if _write_engine is not None:
        await _write_engine.dispose()
        _probe.pool_closed()
        _write_engine = None

    if _read_engine is not None:
        await _read_engine.dispose()
        _probe.pool_closed()
        _read_engine = None
        _read_sessionmaker = None
