"""Integration test fixtures for role sync.

These fixtures require a running PostgreSQL instance. The identity store
relation (auth.users) is created here the way the identity store would
create it; the profile side is created the way the migrations do.

Override connection details with ROLESYNC_DB_HOST, ROLESYNC_DB_PORT, etc.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from pydantic import SecretStr
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from infrastructure.database.engines import build_async_url
from infrastructure.settings import (
    DatabaseSettings,
    ReactionBackend,
    SyncSettings,
    get_sync_settings,
)
from role_sync.domain.value_objects import Role
from role_sync.infrastructure.models import profile_table
from role_sync.infrastructure.reactions.orm_backend import (
    install_reactions,
    remove_reactions,
)
from role_sync.infrastructure.reactions.trigger_ddl import TriggerInstaller


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires database)",
    )


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests."""
    return DatabaseSettings(
        host=os.getenv("ROLESYNC_DB_HOST", "localhost"),
        port=int(os.getenv("ROLESYNC_DB_PORT", "5432")),
        database=os.getenv("ROLESYNC_DB_DATABASE", "rolesync"),
        username=os.getenv("ROLESYNC_DB_USERNAME", "rolesync"),
        password=SecretStr(os.getenv("ROLESYNC_DB_PASSWORD", "rolesync_dev_password")),
    )


@pytest.fixture
def sync_settings() -> SyncSettings:
    """Settings the ORM models were mapped with."""
    return get_sync_settings()


@pytest_asyncio.fixture
async def engine(
    integration_db_settings: DatabaseSettings,
) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        build_async_url(integration_db_settings), poolclass=NullPool
    )
    yield engine
    await engine.dispose()


async def _create_schema(engine: AsyncEngine, settings: SyncSettings) -> None:
    labels = ", ".join(f"'{role.value}'" for role in Role)
    async with engine.begin() as conn:
        await conn.execute(text(f"DROP TABLE IF EXISTS {settings.profile_relation}"))
        await conn.execute(text(f"DROP TYPE IF EXISTS {settings.qualified_role_type}"))
        await conn.execute(
            text(f"DROP TABLE IF EXISTS {settings.identity_relation} CASCADE")
        )
        await conn.execute(
            text(f"CREATE SCHEMA IF NOT EXISTS {settings.identity_schema}")
        )
        await conn.execute(
            text(
                f"CREATE TABLE {settings.identity_relation} ("
                "id uuid PRIMARY KEY, "
                "created_at timestamptz NOT NULL DEFAULT now(), "
                f"{settings.claims_column} jsonb NULL)"
            )
        )
        await conn.execute(
            text(f"CREATE TYPE {settings.qualified_role_type} AS ENUM ({labels})")
        )
        await conn.run_sync(
            lambda sync_conn: profile_table.create(sync_conn, checkfirst=False)
        )


@pytest_asyncio.fixture(params=[ReactionBackend.DATABASE, ReactionBackend.APPLICATION])
async def backend(
    request, engine: AsyncEngine, sync_settings: SyncSettings
) -> AsyncGenerator[ReactionBackend, None]:
    """Fresh schema with the reactions installed by one of the backends."""
    backend = request.param
    await _create_schema(engine, sync_settings)

    if backend is ReactionBackend.DATABASE:
        async with engine.begin() as conn:
            await conn.run_sync(
                lambda sync_conn: TriggerInstaller(sync_conn, settings=sync_settings).install()
            )
    else:
        install_reactions(sync_settings)

    yield backend

    if backend is ReactionBackend.APPLICATION:
        remove_reactions()
    else:
        async with engine.begin() as conn:
            await conn.run_sync(
                lambda sync_conn: TriggerInstaller(sync_conn, settings=sync_settings).remove()
            )


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
