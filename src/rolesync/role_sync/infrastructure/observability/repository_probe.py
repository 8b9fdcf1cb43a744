"""Domain probe for role sync repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to identity and profile persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class IdentityRepositoryProbe(Protocol):
    """Domain probe for identity repository operations."""

    def identity_added(self, identity_id: str) -> None:
        """Record that an identity record was inserted."""
        ...

    def identity_retrieved(self, identity_id: str) -> None:
        """Record that an identity record was retrieved."""
        ...

    def identity_not_found(self, identity_id: str) -> None:
        """Record that an identity record was not found."""
        ...

    def claims_drift_scanned(self, drift_count: int) -> None:
        """Record the outcome of a claims drift scan."""
        ...

    def with_context(self, context: ObservationContext) -> IdentityRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class ProfileRepositoryProbe(Protocol):
    """Domain probe for profile repository operations."""

    def profile_added(self, profile_id: str) -> None:
        """Record that a profile was inserted."""
        ...

    def profile_saved(self, profile_id: str, role: str | None) -> None:
        """Record that a profile was updated."""
        ...

    def profile_retrieved(self, profile_id: str) -> None:
        """Record that a profile was retrieved."""
        ...

    def profile_not_found(self, profile_id: str) -> None:
        """Record that a profile was not found."""
        ...

    def with_context(self, context: ObservationContext) -> ProfileRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultIdentityRepositoryProbe:
    """Default implementation of IdentityRepositoryProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultIdentityRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultIdentityRepositoryProbe(logger=self._logger, context=context)

    def identity_added(self, identity_id: str) -> None:
        """Record that an identity record was inserted."""
        self._logger.info(
            "identity_added",
            identity_id=identity_id,
            **self._get_context_kwargs(),
        )

    def identity_retrieved(self, identity_id: str) -> None:
        """Record that an identity record was retrieved."""
        self._logger.debug(
            "identity_retrieved",
            identity_id=identity_id,
            **self._get_context_kwargs(),
        )

    def identity_not_found(self, identity_id: str) -> None:
        """Record that an identity record was not found."""
        self._logger.debug(
            "identity_not_found",
            identity_id=identity_id,
            **self._get_context_kwargs(),
        )

    def claims_drift_scanned(self, drift_count: int) -> None:
        """Record the outcome of a claims drift scan."""
        log = self._logger.warning if drift_count else self._logger.info
        log(
            "claims_drift_scanned",
            drift_count=drift_count,
            **self._get_context_kwargs(),
        )


class DefaultProfileRepositoryProbe:
    """Default implementation of ProfileRepositoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultProfileRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultProfileRepositoryProbe(logger=self._logger, context=context)

    def profile_added(self, profile_id: str) -> None:
        """Record that a profile was inserted."""
        self._logger.info(
            "profile_added",
            profile_id=profile_id,
            **self._get_context_kwargs(),
        )

    def profile_saved(self, profile_id: str, role: str | None) -> None:
        """Record that a profile was updated."""
        self._logger.info(
            "profile_saved",
            profile_id=profile_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def profile_retrieved(self, profile_id: str) -> None:
        """Record that a profile was retrieved."""
        self._logger.debug(
            "profile_retrieved",
            profile_id=profile_id,
            **self._get_context_kwargs(),
        )

    def profile_not_found(self, profile_id: str) -> None:
        """Record that a profile was not found."""
        self._logger.debug(
            "profile_not_found",
            profile_id=profile_id,
            **self._get_context_kwargs(),
        )
