"""Database reaction backend: reactions as PostgreSQL triggers.

Renders each declared reaction into a trigger function plus a row-level
AFTER trigger, and installs or removes them. Security-definer reactions
become SECURITY DEFINER functions with an empty search_path, which is the
privilege boundary that lets them write the identity table on behalf of
callers who cannot.

PostgreSQL itself refuses a direct call of a function returning TRIGGER,
so the TG_OP check at the top of each body never sees a direct call. It
only rejects firing from a trigger on the wrong operation, for example
after a function is attached to another trigger by hand.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import text

from infrastructure.settings import ReactionBackend, SyncSettings, get_sync_settings
from role_sync.infrastructure.observability import (
    DefaultReactionProbe,
    ReactionProbe,
)
from role_sync.infrastructure.reactions.events import Relation
from role_sync.infrastructure.reactions.registry import REACTIONS, Reaction

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection


def _relation(reaction: Reaction, settings: SyncSettings) -> str:
    if reaction.relation == Relation.IDENTITY:
        return settings.identity_relation
    return settings.profile_relation


def function_name(reaction: Reaction, settings: SyncSettings) -> str:
    """Schema-qualified trigger function name."""
    return f"{settings.profile_schema}.{reaction.name}"


def trigger_name(reaction: Reaction) -> str:
    return f"{reaction.name}_trigger"


def render_function(reaction: Reaction, settings: SyncSettings) -> str:
    """CREATE OR REPLACE FUNCTION statement for a reaction."""
    security = "SECURITY DEFINER" if reaction.security_definer else "SECURITY INVOKER"
    body = "\n".join(
        f"    {line}" for line in reaction.body(settings).splitlines()
    )
    return f"""CREATE OR REPLACE FUNCTION {function_name(reaction, settings)}()
RETURNS TRIGGER
LANGUAGE plpgsql
{security}
SET search_path = ''
AS $$
BEGIN
    IF TG_OP IS DISTINCT FROM '{reaction.operation.value}' THEN
        RAISE EXCEPTION '{reaction.name} can only be called from a trigger';
    END IF;

{body}

    RETURN NEW;
END;
$$;"""


def render_trigger(reaction: Reaction, settings: SyncSettings) -> str:
    """CREATE TRIGGER statement for a reaction."""
    event = reaction.operation.value
    if reaction.columns:
        event = f"{event} OF {', '.join(reaction.columns)}"
    lines = [
        f"CREATE TRIGGER {trigger_name(reaction)}",
        f"AFTER {event} ON {_relation(reaction, settings)}",
        "FOR EACH ROW",
    ]
    if reaction.when is not None:
        lines.append(f"WHEN ({reaction.when.sql})")
    lines.append(f"EXECUTE FUNCTION {function_name(reaction, settings)}();")
    return "\n".join(lines)


def render_install(
    settings: SyncSettings | None = None,
    reactions: tuple[Reaction, ...] = REACTIONS,
) -> list[str]:
    """Statements installing every reaction: functions first, then triggers.

    Existing triggers are dropped first so installing is repeatable.
    """
    settings = settings or get_sync_settings()
    statements = [render_function(reaction, settings) for reaction in reactions]
    for reaction in reactions:
        statements.append(
            f"DROP TRIGGER IF EXISTS {trigger_name(reaction)} "
            f"ON {_relation(reaction, settings)};"
        )
        statements.append(render_trigger(reaction, settings))
    return statements


def render_remove(
    settings: SyncSettings | None = None,
    reactions: tuple[Reaction, ...] = REACTIONS,
) -> list[str]:
    """Statements removing every reaction: triggers first, then functions.

    Tables and their rows are never touched.
    """
    settings = settings or get_sync_settings()
    statements = [
        f"DROP TRIGGER IF EXISTS {trigger_name(reaction)} "
        f"ON {_relation(reaction, settings)};"
        for reaction in reversed(reactions)
    ]
    statements.extend(
        f"DROP FUNCTION IF EXISTS {function_name(reaction, settings)}();"
        for reaction in reversed(reactions)
    )
    return statements


class TriggerInstaller:
    """Installs, removes and inspects the reaction triggers on a connection."""

    def __init__(
        self,
        connection: Connection,
        settings: SyncSettings | None = None,
        probe: ReactionProbe | None = None,
        reactions: tuple[Reaction, ...] = REACTIONS,
    ) -> None:
        self._connection = connection
        self._settings = settings or get_sync_settings()
        self._probe = probe or DefaultReactionProbe()
        self._reactions = reactions

    def install(self) -> list[str]:
        """Create the trigger functions and triggers.

        Returns:
            Names of the installed reactions
        """
        for statement in render_install(self._settings, self._reactions):
            self._connection.execute(text(statement))
        names = [reaction.name for reaction in self._reactions]
        self._probe.reactions_installed(ReactionBackend.DATABASE.value, names)
        return names

    def remove(self) -> list[str]:
        """Drop the triggers and trigger functions, keeping all data.

        Returns:
            Names of the removed reactions
        """
        for statement in render_remove(self._settings, self._reactions):
            self._connection.execute(text(statement))
        names = [reaction.name for reaction in self._reactions]
        self._probe.reactions_removed(ReactionBackend.DATABASE.value, names)
        return names

    def installed(self) -> dict[str, bool]:
        """Report, per reaction, whether its trigger exists."""
        stmt = text(
            "SELECT tgname FROM pg_catalog.pg_trigger "
            "WHERE NOT tgisinternal AND tgname = ANY(:names)"
        )
        names = [trigger_name(reaction) for reaction in self._reactions]
        present = set(self._connection.execute(stmt, {"names": names}).scalars())
        return {
            reaction.name: trigger_name(reaction) in present
            for reaction in self._reactions
        }
