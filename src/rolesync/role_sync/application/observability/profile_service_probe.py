"""Protocol for profile application service observability.

Defines the interface for domain probes that capture application-level
domain events for profile service operations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ProfileServiceProbe(Protocol):
    """Domain probe for profile application service operations."""

    def role_changed(self, profile_id: str, old_role: str | None, new_role: str | None) -> None:
        """Record that a profile's role changed (claims were patched)."""
        ...

    def role_unchanged(self, profile_id: str, role: str | None) -> None:
        """Record that a role change was a no-op."""
        ...

    def invalid_role_rejected(self, profile_id: str, role: str) -> None:
        """Record that a role outside the vocabulary was refused."""
        ...

    def role_change_failed(self, profile_id: str, error: str) -> None:
        """Record that a role change aborted."""
        ...

    def with_context(self, context: ObservationContext) -> ProfileServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultProfileServiceProbe:
    """Default implementation of ProfileServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultProfileServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultProfileServiceProbe(logger=self._logger, context=context)

    def role_changed(self, profile_id: str, old_role: str | None, new_role: str | None) -> None:
        """Record that a profile's role changed."""
        self._logger.info(
            "profile_role_changed",
            profile_id=profile_id,
            old_role=old_role,
            new_role=new_role,
            **self._get_context_kwargs(),
        )

    def role_unchanged(self, profile_id: str, role: str | None) -> None:
        """Record that a role change was a no-op."""
        self._logger.debug(
            "profile_role_unchanged",
            profile_id=profile_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def invalid_role_rejected(self, profile_id: str, role: str) -> None:
        """Record that a role outside the vocabulary was refused."""
        self._logger.warning(
            "invalid_role_rejected",
            profile_id=profile_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def role_change_failed(self, profile_id: str, error: str) -> None:
        """Record that a role change aborted."""
        self._logger.error(
            "profile_role_change_failed",
            profile_id=profile_id,
            error=error,
            **self._get_context_kwargs(),
        )
