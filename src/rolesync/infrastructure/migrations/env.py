"""Alembic environment for the role sync schema.

Runs migrations on the async write engine. The identity relation belongs
to the external identity store and is excluded from autogenerate.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from infrastructure.database.engines import build_async_url
from infrastructure.database.models import Base
from infrastructure.observability import DefaultMigrationProbe
from infrastructure.settings import get_database_settings

# Register the role sync tables on Base.metadata
import role_sync.infrastructure.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_settings = get_database_settings()
_probe = DefaultMigrationProbe()


def include_object(object, name, type_, reflected, compare_to) -> bool:
    """Leave relations owned by other systems out of autogenerate."""
    if type_ == "table" and object.info.get("external", False):
        return False
    return True


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL without a connection."""
    _probe.migrations_started("offline", _settings.connection_string)

    context.configure(
        url=build_async_url(_settings),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()

    _probe.migrations_completed("offline")


def do_run_migrations(connection) -> None:
    """Run migrations given a sync-style connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in 'online' mode with an async engine."""
    _probe.migrations_started("online", _settings.connection_string)

    connectable = create_async_engine(
        build_async_url(_settings),
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()
    _probe.migrations_completed("online")


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
