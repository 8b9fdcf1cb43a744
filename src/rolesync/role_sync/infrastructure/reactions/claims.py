"""Claims payload writes.

Two write shapes exist and must not be mixed up:

- merge: shallow union of {"role": ...} into the payload, new value wins
  (``payload || jsonb_build_object(...)``), used when a profile is created;
- set: replace the value at the "role" path only (``jsonb_set``), used when
  a profile's role changes.

Both treat a NULL payload as an empty document and are single UPDATE
statements, so keys written concurrently by others are never overwritten.
A NULL role is projected according to the NullRolePolicy.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Text, func, literal, literal_column, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql.elements import ColumnElement

from infrastructure.settings import NullRolePolicy, SyncSettings
from role_sync.domain.aggregates import CLAIMS_ROLE_KEY
from role_sync.domain.value_objects import Capability, Grant, Role
from role_sync.infrastructure.models import claims_column, identity_table
from role_sync.ports.exceptions import PrivilegeDeniedError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.sql.dml import Update

    from role_sync.infrastructure.observability import ReactionProbe


def _payload(column: ColumnElement) -> ColumnElement:
    return func.coalesce(column, literal_column("'{}'::jsonb", JSONB))


def _role_value(role: Role | str | None) -> str | None:
    return None if role is None else str(Role(role))


def merge_role_expression(
    column: ColumnElement, role: Role | str | None, policy: NullRolePolicy
) -> ColumnElement:
    """Expression for the payload with {"role": role} shallow-merged in."""
    value = _role_value(role)
    if value is None and policy is NullRolePolicy.REMOVE:
        return _payload(column).op("-", return_type=JSONB)(
            literal(CLAIMS_ROLE_KEY, Text)
        )
    return _payload(column).op("||", return_type=JSONB)(
        literal({CLAIMS_ROLE_KEY: value}, JSONB)
    )


def set_role_expression(
    column: ColumnElement, role: Role | str | None, policy: NullRolePolicy
) -> ColumnElement:
    """Expression for the payload with only its "role" key replaced."""
    value = _role_value(role)
    if value is None and policy is NullRolePolicy.REMOVE:
        return _payload(column).op("-", return_type=JSONB)(
            literal(CLAIMS_ROLE_KEY, Text)
        )
    new_value = JSONB.NULL if value is None else value
    return func.jsonb_set(
        _payload(column),
        literal_column(f"'{{{CLAIMS_ROLE_KEY}}}'::text[]"),
        literal(new_value, JSONB),
        type_=JSONB,
    )


def plpgsql_merge_role(settings: SyncSettings, role_ref: str = "NEW.role") -> str:
    """PL/pgSQL expression equivalent to merge_role_expression."""
    payload = f"coalesce({settings.claims_column}, '{{}}'::jsonb)"
    merged = f"{payload} || jsonb_build_object('{CLAIMS_ROLE_KEY}', {role_ref})"
    if settings.null_role_policy is NullRolePolicy.REMOVE:
        return (
            f"CASE WHEN {role_ref} IS NULL THEN {payload} - '{CLAIMS_ROLE_KEY}' "
            f"ELSE {merged} END"
        )
    return merged


def plpgsql_set_role(settings: SyncSettings, role_ref: str = "NEW.role") -> str:
    """PL/pgSQL expression equivalent to set_role_expression."""
    payload = f"coalesce({settings.claims_column}, '{{}}'::jsonb)"
    if settings.null_role_policy is NullRolePolicy.REMOVE:
        return (
            f"CASE WHEN {role_ref} IS NULL THEN {payload} - '{CLAIMS_ROLE_KEY}' "
            f"ELSE jsonb_set({payload}, '{{{CLAIMS_ROLE_KEY}}}', to_jsonb({role_ref})) END"
        )
    # jsonb_set is strict: a SQL NULL value would null the whole payload.
    return (
        f"jsonb_set({payload}, '{{{CLAIMS_ROLE_KEY}}}', "
        f"coalesce(to_jsonb({role_ref}), 'null'::jsonb))"
    )


class ClaimsWriter:
    """Writes the role key of an identity's claims payload.

    Every write checks the capability it runs under; only a capability
    carrying the claims grant may write. Reactions that need to write are
    handed the service capability by the dispatcher.
    """

    def __init__(
        self,
        connection: Connection,
        capability: Capability,
        policy: NullRolePolicy,
        probe: ReactionProbe,
    ) -> None:
        self._connection = connection
        self._capability = capability
        self._policy = policy
        self._probe = probe

    def merge_role(self, identity_id: uuid.UUID, role: Role | str | None) -> int:
        """Shallow-merge the role into the payload.

        Returns:
            Number of identity rows written

        Raises:
            PrivilegeDeniedError: If the capability lacks the claims grant
        """
        self._authorize("merge")
        stmt = self._update(identity_id).values(
            {claims_column: merge_role_expression(claims_column, role, self._policy)}
        )
        return self._execute(stmt, identity_id, role, "merge")

    def set_role(self, identity_id: uuid.UUID, role: Role | str | None) -> int:
        """Set the payload's role key, leaving sibling keys untouched.

        Returns:
            Number of identity rows written

        Raises:
            PrivilegeDeniedError: If the capability lacks the claims grant
        """
        self._authorize("set")
        stmt = self._update(identity_id).values(
            {claims_column: set_role_expression(claims_column, role, self._policy)}
        )
        return self._execute(stmt, identity_id, role, "set")

    def _authorize(self, operation: str) -> None:
        if not self._capability.allows(Grant.CLAIMS_WRITE):
            self._probe.claims_write_denied(self._capability.principal, operation)
            raise PrivilegeDeniedError(self._capability.principal, operation)

    def _update(self, identity_id: uuid.UUID) -> Update:
        return update(identity_table).where(identity_table.c.id == identity_id)

    def _execute(
        self,
        stmt: Update,
        identity_id: uuid.UUID,
        role: Role | str | None,
        operation: str,
    ) -> int:
        result = self._connection.execute(stmt)
        self._probe.claims_role_written(
            identity_id=str(identity_id),
            role=_role_value(role),
            operation=operation,
            rows=result.rowcount,
        )
        return result.rowcount
