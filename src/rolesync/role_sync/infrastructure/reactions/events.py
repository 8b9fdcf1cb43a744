"""Row-level mutation events and the context reactions run in.

A RowEvent is the Python counterpart of a trigger's TG_OP/NEW/OLD. A
ReactionContext carries the event together with the connection of the
triggering transaction and the capability the reaction runs under.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from role_sync.domain.value_objects import Capability
from role_sync.ports.exceptions import InvalidInvocationContextError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

    from infrastructure.settings import SyncSettings
    from role_sync.infrastructure.observability import ReactionProbe
    from role_sync.infrastructure.reactions.registry import ReactionDispatcher

# Stands in for an OLD value that was never loaded.
UNKNOWN = object()


class Relation(StrEnum):
    """Relations whose row mutations drive reactions."""

    IDENTITY = "identity"
    PROFILE = "profile"


class RowOperation(StrEnum):
    """Row-level mutation kinds, named like TG_OP."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"


@dataclass(frozen=True)
class RowEvent:
    """A single row mutation.

    Attributes:
        relation: Relation the row belongs to
        operation: INSERT or UPDATE
        new: Row values after the mutation
        old: Row values before the mutation (UPDATE only)
        columns: Columns named in the UPDATE's SET list
    """

    relation: Relation
    operation: RowOperation
    new: Mapping[str, Any]
    old: Mapping[str, Any] | None = None
    columns: frozenset[str] = field(default_factory=frozenset)

    @property
    def row_id(self) -> Any:
        """Identifier of the mutated row."""
        return self.new["id"]

    def is_distinct(self, column: str) -> bool:
        """Return True if OLD.column IS DISTINCT FROM NEW.column.

        An INSERT has no OLD row, so every column counts as distinct.
        """
        if self.old is None:
            return True
        old_value = self.old.get(column, UNKNOWN)
        if old_value is UNKNOWN:
            return True
        return old_value != self.new.get(column)


@dataclass(frozen=True)
class ReactionContext:
    """Everything a reaction handler may touch while it runs."""

    connection: Connection
    event: RowEvent | None
    capability: Capability
    settings: SyncSettings
    probe: ReactionProbe
    dispatcher: ReactionDispatcher | None = None

    def require_event(self, reaction: str, operation: RowOperation) -> RowEvent:
        """Return the row event, refusing to run outside one.

        Raises:
            InvalidInvocationContextError: If there is no row event, or it is
                not the operation the reaction is attached to
        """
        if self.event is None or self.event.operation != operation:
            raise InvalidInvocationContextError(reaction, expected=operation.value)
        return self.event
