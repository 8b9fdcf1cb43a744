"""Domain probes for infrastructure observability.

Domain probes provide a high-level instrumentation API oriented around
domain semantics, keeping infrastructure code clean and testable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ConnectionProbe(Protocol):
    """Domain probe for database connection observability.

    This probe captures domain-significant events related to database
    connections without exposing logging implementation details.
    """

    def engine_created(self, purpose: str, connection_string: str) -> None:
        """Record that an engine was created for reads or writes."""
        ...

    def connection_verified(self, connection_string: str) -> None:
        """Record that the database answered a liveness query."""
        ...

    def connection_failed(self, connection_string: str, error: Exception) -> None:
        """Record that a database connection attempt failed."""
        ...

    def pool_closed(self) -> None:
        """Record that the connection pool was closed."""
        ...

    def with_context(self, context: ObservationContext) -> ConnectionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConnectionProbe:
    """Default implementation of ConnectionProbe using structlog.

    Supports observation context for including request-scoped metadata
    with all log events.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultConnectionProbe:
        """Create a new probe with observation context bound."""
        return DefaultConnectionProbe(logger=self._logger, context=context)

    def engine_created(self, purpose: str, connection_string: str) -> None:
        """Record that an engine was created for reads or writes."""
        self._logger.info(
            "database_engine_created",
            purpose=purpose,
            connection_string=connection_string,
            **self._get_context_kwargs(),
        )

    def connection_verified(self, connection_string: str) -> None:
        """Record that the database answered a liveness query."""
        self._logger.debug(
            "database_connection_verified",
            connection_string=connection_string,
            **self._get_context_kwargs(),
        )

    def connection_failed(self, connection_string: str, error: Exception) -> None:
        """Record that a database connection attempt failed."""
        self._logger.error(
            "database_connection_failed",
            connection_string=connection_string,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def pool_closed(self) -> None:
        """Record that the connection pool was closed."""
        self._logger.info(
            "connection_pool_closed",
            **self._get_context_kwargs(),
        )


class MigrationProbe(Protocol):
    """Domain probe for schema migration observability."""

    def migrations_started(self, mode: str, url: str) -> None:
        """Record that a migration run started (online or offline)."""
        ...

    def migrations_completed(self, mode: str) -> None:
        """Record that a migration run finished."""
        ...

    def reactions_skipped(self, backend: str) -> None:
        """Record that trigger installation was skipped for this backend."""
        ...

    def with_context(self, context: ObservationContext) -> MigrationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultMigrationProbe:
    """Default implementation of MigrationProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultMigrationProbe:
        """Create a new probe with observation context bound."""
        return DefaultMigrationProbe(logger=self._logger, context=context)

    def migrations_started(self, mode: str, url: str) -> None:
        self._logger.info(
            "migrations_started",
            mode=mode,
            url=url,
            **self._get_context_kwargs(),
        )

    def migrations_completed(self, mode: str) -> None:
        self._logger.info(
            "migrations_completed",
            mode=mode,
            **self._get_context_kwargs(),
        )

    def reactions_skipped(self, backend: str) -> None:
        self._logger.info(
            "reaction_triggers_skipped",
            backend=backend,
            **self._get_context_kwargs(),
        )
