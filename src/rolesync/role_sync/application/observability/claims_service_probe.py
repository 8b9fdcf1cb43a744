"""Protocol for claims application service observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ClaimsServiceProbe(Protocol):
    """Domain probe for claims application service operations."""

    def claims_read(self, identity_id: str, role: str | None) -> None:
        """Record that an identity's claims payload was read."""
        ...

    def drift_detected(self, identity_id: str, profile_role: str | None, claims_role: str | None) -> None:
        """Record one identity whose claims role disagrees with its profile."""
        ...

    def with_context(self, context: ObservationContext) -> ClaimsServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultClaimsServiceProbe:
    """Default implementation of ClaimsServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultClaimsServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultClaimsServiceProbe(logger=self._logger, context=context)

    def claims_read(self, identity_id: str, role: str | None) -> None:
        self._logger.debug(
            "claims_read",
            identity_id=identity_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def drift_detected(self, identity_id: str, profile_role: str | None, claims_role: str | None) -> None:
        self._logger.warning(
            "claims_drift_detected",
            identity_id=identity_id,
            profile_role=profile_role,
            claims_role=claims_role,
            **self._get_context_kwargs(),
        )
