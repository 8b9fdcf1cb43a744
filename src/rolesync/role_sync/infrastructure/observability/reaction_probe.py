"""Domain probe for role sync reactions.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events emitted while the identity mirror and the claims
reactions run, and while reactions are installed or removed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ReactionProbe(Protocol):
    """Domain probe for reaction execution and installation."""

    def reaction_fired(self, reaction: str, identity_id: str) -> None:
        """Record that a reaction ran for a row event."""
        ...

    def reaction_skipped(self, reaction: str, identity_id: str) -> None:
        """Record that a reaction's guard filtered out a row event."""
        ...

    def reaction_failed(self, reaction: str, identity_id: str, error: str) -> None:
        """Record that a reaction raised; the transaction will abort."""
        ...

    def profile_mirrored(self, identity_id: str) -> None:
        """Record that a profile was created for a new identity."""
        ...

    def claims_role_written(
        self, identity_id: str, role: str | None, operation: str, rows: int
    ) -> None:
        """Record that the claims role was merged or set."""
        ...

    def claims_write_denied(self, principal: str, operation: str) -> None:
        """Record that a claims write lacked the claims grant."""
        ...

    def reactions_installed(self, backend: str, reactions: list[str]) -> None:
        """Record that reactions were attached to their row events."""
        ...

    def reactions_removed(self, backend: str, reactions: list[str]) -> None:
        """Record that reactions were detached from their row events."""
        ...

    def with_context(self, context: ObservationContext) -> ReactionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultReactionProbe:
    """Default implementation of ReactionProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultReactionProbe:
        """Create a new probe with observation context bound."""
        return DefaultReactionProbe(logger=self._logger, context=context)

    def reaction_fired(self, reaction: str, identity_id: str) -> None:
        """Record that a reaction ran for a row event."""
        self._logger.debug(
            "reaction_fired",
            reaction=reaction,
            identity_id=identity_id,
            **self._get_context_kwargs(),
        )

    def reaction_skipped(self, reaction: str, identity_id: str) -> None:
        """Record that a reaction's guard filtered out a row event."""
        self._logger.debug(
            "reaction_skipped",
            reaction=reaction,
            identity_id=identity_id,
            **self._get_context_kwargs(),
        )

    def reaction_failed(self, reaction: str, identity_id: str, error: str) -> None:
        """Record that a reaction raised; the transaction will abort."""
        self._logger.error(
            "reaction_failed",
            reaction=reaction,
            identity_id=identity_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def profile_mirrored(self, identity_id: str) -> None:
        """Record that a profile was created for a new identity."""
        self._logger.info(
            "profile_mirrored",
            identity_id=identity_id,
            **self._get_context_kwargs(),
        )

    def claims_role_written(
        self, identity_id: str, role: str | None, operation: str, rows: int
    ) -> None:
        """Record that the claims role was merged or set."""
        self._logger.info(
            "claims_role_written",
            identity_id=identity_id,
            role=role,
            operation=operation,
            rows=rows,
            **self._get_context_kwargs(),
        )

    def claims_write_denied(self, principal: str, operation: str) -> None:
        """Record that a claims write lacked the claims grant."""
        self._logger.warning(
            "claims_write_denied",
            principal=principal,
            operation=operation,
            **self._get_context_kwargs(),
        )

    def reactions_installed(self, backend: str, reactions: list[str]) -> None:
        """Record that reactions were attached to their row events."""
        self._logger.info(
            "reactions_installed",
            backend=backend,
            reactions=reactions,
            **self._get_context_kwargs(),
        )

    def reactions_removed(self, backend: str, reactions: list[str]) -> None:
        """Record that reactions were detached from their row events."""
        self._logger.info(
            "reactions_removed",
            backend=backend,
            reactions=reactions,
            **self._get_context_kwargs(),
        )
