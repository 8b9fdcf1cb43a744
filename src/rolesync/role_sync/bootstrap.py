"""Process lifecycle for the role sync bounded context.

Wires logging, the database connection and, for the application backend,
the ORM reaction listeners. The database backend needs nothing at runtime;
its triggers are installed by the Alembic revisions.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from infrastructure.database.sessions import (
    close_database_connections,
    get_write_engine,
    verify_connection,
)
from infrastructure.logging import configure_logging
from infrastructure.settings import ReactionBackend, Settings, get_settings
from role_sync.infrastructure.reactions.orm_backend import (
    install_reactions,
    remove_reactions,
)


@asynccontextmanager
async def role_sync_lifespan(settings: Settings | None = None) -> AsyncIterator[Settings]:
    """Run the role sync context for the duration of the block.

    Manages:
    - Logging configuration
    - Connection verification (fails fast when the database is unreachable)
    - ORM reaction listeners (application backend only)
    - Engine disposal on exit

    Yields:
        The settings in effect
    """
    settings = settings or get_settings()
    sync = settings.sync
    configure_logging(
        "debug" if settings.debug else settings.log_level,
        app_name=settings.app_name,
        reaction_backend=sync.reaction_backend.value,
    )

    await verify_connection(get_write_engine())

    if sync.reaction_backend is ReactionBackend.APPLICATION:
        install_reactions(sync)

    try:
        yield settings
    finally:
        if sync.reaction_backend is ReactionBackend.APPLICATION:
            remove_reactions()
        await close_database_connections()
