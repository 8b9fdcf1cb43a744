"""Application reaction backend: reactions as SQLAlchemy mapper events.

Mapper ``after_insert``/``after_update`` events fire during flush on the
connection of the flushing transaction, so reactions commit or roll back
together with the write that caused them. Only writes made through the ORM
models are observed; use the database backend when the identity store
writes to the database directly.

The caller's capability is read from ``session.info["capability"]``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from sqlalchemy import event, inspect, select
from sqlalchemy.orm import object_session

from infrastructure.settings import ReactionBackend, SyncSettings
from role_sync.domain.value_objects import ANONYMOUS_CAPABILITY, Capability
from role_sync.infrastructure.models import (
    IdentityModel,
    ProfileModel,
    identity_table,
    profile_table,
)
from role_sync.infrastructure.observability import ReactionProbe
from role_sync.infrastructure.reactions.events import (
    UNKNOWN,
    Relation,
    RowEvent,
    RowOperation,
)
from role_sync.infrastructure.reactions.registry import ReactionDispatcher

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Connection
    from sqlalchemy.orm import Mapper

CAPABILITY_KEY = "capability"

_Listener = Callable[["Mapper[Any]", "Connection", Any], None]

_installed: list[tuple[type, str, _Listener]] = []
_dispatcher: ReactionDispatcher | None = None


def _caller_capability(target: Any) -> Capability:
    session = object_session(target)
    if session is None:
        return ANONYMOUS_CAPABILITY
    return session.info.get(CAPABILITY_KEY, ANONYMOUS_CAPABILITY)


def _load_row(connection: Connection, table: Table, row_id: Any) -> dict[str, Any]:
    """Read the row as committed by this flush, like a trigger's NEW."""
    stmt = select(table).where(table.c.id == row_id)
    return dict(connection.execute(stmt).mappings().one())


def _identity_after_insert(mapper: Mapper[Any], connection: Connection, target: Any) -> None:
    assert _dispatcher is not None
    row_event = RowEvent(
        relation=Relation.IDENTITY,
        operation=RowOperation.INSERT,
        new=_load_row(connection, identity_table, target.id),
    )
    _dispatcher.dispatch(connection, row_event, _caller_capability(target))


def _profile_after_insert(mapper: Mapper[Any], connection: Connection, target: Any) -> None:
    assert _dispatcher is not None
    row_event = RowEvent(
        relation=Relation.PROFILE,
        operation=RowOperation.INSERT,
        new=_load_row(connection, profile_table, target.id),
    )
    _dispatcher.dispatch(connection, row_event, _caller_capability(target))


def _profile_after_update(mapper: Mapper[Any], connection: Connection, target: Any) -> None:
    assert _dispatcher is not None
    history = inspect(target).attrs.role.history
    if not history.has_changes():
        # role was not part of this UPDATE's SET list
        return

    old_role = history.deleted[0] if history.deleted else UNKNOWN
    row_event = RowEvent(
        relation=Relation.PROFILE,
        operation=RowOperation.UPDATE,
        new=_load_row(connection, profile_table, target.id),
        old={"id": target.id, "role": old_role},
        columns=frozenset({"role"}),
    )
    _dispatcher.dispatch(connection, row_event, _caller_capability(target))


_LISTENERS: tuple[tuple[type, str, _Listener], ...] = (
    (IdentityModel, "after_insert", _identity_after_insert),
    (ProfileModel, "after_insert", _profile_after_insert),
    (ProfileModel, "after_update", _profile_after_update),
)


def install_reactions(
    settings: SyncSettings | None = None,
    probe: ReactionProbe | None = None,
) -> list[str]:
    """Attach the reactions to ORM mapper events.

    Idempotent: installing twice keeps a single set of listeners, built
    from the most recent settings.

    Returns:
        Names of the installed reactions
    """
    global _dispatcher

    remove_reactions()
    kwargs: dict[str, Any] = {}
    if settings is not None:
        kwargs["settings"] = settings
    if probe is not None:
        kwargs["probe"] = probe
    _dispatcher = ReactionDispatcher(**kwargs)

    for target, identifier, listener in _LISTENERS:
        event.listen(target, identifier, listener)
        _installed.append((target, identifier, listener))

    names = [reaction.name for reaction in _dispatcher.reactions]
    _dispatcher.probe.reactions_installed(ReactionBackend.APPLICATION.value, names)
    return names


def remove_reactions() -> list[str]:
    """Detach the reactions from ORM mapper events.

    Only listeners are removed; no data is touched.

    Returns:
        Names of the removed reactions (empty if none were installed)
    """
    global _dispatcher

    if not _installed:
        return []

    while _installed:
        target, identifier, listener = _installed.pop()
        if event.contains(target, identifier, listener):
            event.remove(target, identifier, listener)

    names: list[str] = []
    if _dispatcher is not None:
        names = [reaction.name for reaction in _dispatcher.reactions]
        _dispatcher.probe.reactions_removed(ReactionBackend.APPLICATION.value, names)
    _dispatcher = None
    return names


def reactions_installed() -> bool:
    """Return True if the ORM listeners are attached."""
    return all(
        event.contains(target, identifier, listener)
        for target, identifier, listener in _LISTENERS
    )
