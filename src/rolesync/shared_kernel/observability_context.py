"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped and domain-relevant metadata that should be
    included with all instrumentation events. This enables correlation
    of events across a signup or role change and the reactions it caused.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        actor_id: Identifier of the actor performing the operation (if applicable).
        subject_id: Identity the actor is acting on (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(
            request_id="req-123",
            actor_id="admin-1",
        )
        probe = DefaultReactionProbe().with_context(context)
    """

    request_id: str | None = None
    actor_id: str | None = None
    subject_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.actor_id is not None:
            result["actor_id"] = self.actor_id
        if self.subject_id is not None:
            result["subject_id"] = self.subject_id
        result.update(self.extra)
        return result

    def with_subject(self, subject_id: str) -> ObservationContext:
        """Create a new context with the subject set."""
        return ObservationContext(
            request_id=self.request_id,
            actor_id=self.actor_id,
            subject_id=subject_id,
            extra=self.extra,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        new_extra = {**self.extra, **kwargs}
        return ObservationContext(
            request_id=self.request_id,
            actor_id=self.actor_id,
            subject_id=self.subject_id,
            extra=new_extra,
        )
