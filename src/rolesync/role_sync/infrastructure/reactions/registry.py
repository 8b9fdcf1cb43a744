"""Declarations of the role sync reactions and the in-process dispatcher.

Each reaction is declared once here: what it listens to, the guard that
filters events before it runs, whether it runs with elevated privilege,
its Python handler and its PL/pgSQL body. The application backend executes
reactions through ReactionDispatcher; the database backend renders the same
declarations into trigger DDL.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from infrastructure.settings import SyncSettings, get_sync_settings
from role_sync.domain.value_objects import (
    ANONYMOUS_CAPABILITY,
    SERVICE_CAPABILITY,
    Capability,
)
from role_sync.infrastructure.observability import (
    DefaultReactionProbe,
    ReactionProbe,
)
from role_sync.infrastructure.reactions import handlers, plpgsql
from role_sync.infrastructure.reactions.events import (
    ReactionContext,
    Relation,
    RowEvent,
    RowOperation,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection


@dataclass(frozen=True)
class Guard:
    """Precondition evaluated before a reaction runs.

    Attributes:
        evaluate: Python predicate over the row event
        sql: Equivalent trigger WHEN condition
    """

    evaluate: Callable[[RowEvent], bool]
    sql: str


def role_changed(column: str = "role") -> Guard:
    """Guard passing only when OLD.column IS DISTINCT FROM NEW.column."""
    return Guard(
        evaluate=lambda event: event.is_distinct(column),
        sql=f"OLD.{column} IS DISTINCT FROM NEW.{column}",
    )


@dataclass(frozen=True)
class Reaction:
    """A piece of logic that runs synchronously in response to a row event."""

    name: str
    relation: Relation
    operation: RowOperation
    handler: Callable[[ReactionContext], None]
    body: Callable[[SyncSettings], str]
    columns: tuple[str, ...] = ()
    when: Guard | None = None
    security_definer: bool = False

    def listens_to(self, event: RowEvent) -> bool:
        """Return True if the event is on this reaction's relation and operation.

        With columns set (UPDATE OF ...), at least one of them must be in
        the event's SET list.
        """
        if event.relation != self.relation or event.operation != self.operation:
            return False
        if self.columns and not set(self.columns) & event.columns:
            return False
        return True


REACTIONS: tuple[Reaction, ...] = (
    Reaction(
        name=handlers.MIRROR_IDENTITY,
        relation=Relation.IDENTITY,
        operation=RowOperation.INSERT,
        handler=handlers.mirror_identity,
        body=plpgsql.mirror_identity_body,
    ),
    Reaction(
        name=handlers.INITIALIZE_CLAIMS,
        relation=Relation.PROFILE,
        operation=RowOperation.INSERT,
        handler=handlers.initialize_claims,
        body=plpgsql.initialize_claims_body,
        security_definer=True,
    ),
    Reaction(
        name=handlers.UPDATE_CLAIMS,
        relation=Relation.PROFILE,
        operation=RowOperation.UPDATE,
        handler=handlers.update_claims,
        body=plpgsql.update_claims_body,
        columns=("role",),
        when=role_changed("role"),
        security_definer=True,
    ),
)


@dataclass
class ReactionDispatcher:
    """Runs the reactions matching a row event, in declaration order.

    Guards are evaluated before a handler is invoked; a filtered event
    causes no write at all. Security-definer reactions run under the
    service capability, all others under the caller's. Exceptions from a
    handler propagate so the enclosing transaction rolls back.
    """

    reactions: tuple[Reaction, ...] = REACTIONS
    settings: SyncSettings = field(default_factory=get_sync_settings)
    probe: ReactionProbe = field(default_factory=DefaultReactionProbe)

    def matching(self, event: RowEvent) -> list[Reaction]:
        """Reactions attached to the event's relation and operation."""
        return [reaction for reaction in self.reactions if reaction.listens_to(event)]

    def dispatch(
        self,
        connection: Connection,
        event: RowEvent,
        capability: Capability = ANONYMOUS_CAPABILITY,
    ) -> list[str]:
        """Run every matching reaction whose guard passes.

        Returns:
            Names of the reactions that ran
        """
        fired: list[str] = []
        identity_id = str(event.row_id)

        for reaction in self.matching(event):
            if reaction.when is not None and not reaction.when.evaluate(event):
                self.probe.reaction_skipped(reaction.name, identity_id)
                continue

            ctx = ReactionContext(
                connection=connection,
                event=event,
                capability=(
                    SERVICE_CAPABILITY if reaction.security_definer else capability
                ),
                settings=self.settings,
                probe=self.probe,
                dispatcher=self,
            )
            try:
                reaction.handler(ctx)
            except Exception as e:
                self.probe.reaction_failed(reaction.name, identity_id, str(e))
                raise

            self.probe.reaction_fired(reaction.name, identity_id)
            fired.append(reaction.name)

        return fired
