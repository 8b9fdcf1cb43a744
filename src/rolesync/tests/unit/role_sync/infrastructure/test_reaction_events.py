"""Unit tests for row events and the reaction invocation context."""

import uuid

import pytest

from role_sync.domain.value_objects import ANONYMOUS_CAPABILITY
from role_sync.infrastructure.reactions.events import (
    UNKNOWN,
    ReactionContext,
    Relation,
    RowEvent,
    RowOperation,
)
from role_sync.ports.exceptions import InvalidInvocationContextError


def _update(old_role, new_role) -> RowEvent:
    row_id = uuid.uuid4()
    return RowEvent(
        relation=Relation.PROFILE,
        operation=RowOperation.UPDATE,
        new={"id": row_id, "role": new_role},
        old={"id": row_id, "role": old_role},
        columns=frozenset({"role"}),
    )


class TestRowEventIsDistinct:
    """IS DISTINCT FROM semantics, NULL-safe."""

    def test_different_values_are_distinct(self):
        assert _update("user", "admin").is_distinct("role")

    def test_equal_values_are_not_distinct(self):
        assert not _update("admin", "admin").is_distinct("role")

    def test_null_and_value_are_distinct(self):
        assert _update(None, "admin").is_distinct("role")
        assert _update("admin", None).is_distinct("role")

    def test_two_nulls_are_not_distinct(self):
        assert not _update(None, None).is_distinct("role")

    def test_unknown_old_value_counts_as_distinct(self):
        assert _update(UNKNOWN, "admin").is_distinct("role")

    def test_insert_has_no_old_row(self):
        event = RowEvent(
            relation=Relation.PROFILE,
            operation=RowOperation.INSERT,
            new={"id": uuid.uuid4(), "role": "user"},
        )
        assert event.is_distinct("role")

    def test_row_id_reads_new_id(self):
        event = _update("user", "admin")
        assert event.row_id == event.new["id"]


class TestReactionContextRequireEvent:
    """Reactions refuse to run outside their row event."""

    def _context(self, event, mock_connection, sync_settings, mock_reaction_probe):
        return ReactionContext(
            connection=mock_connection,
            event=event,
            capability=ANONYMOUS_CAPABILITY,
            settings=sync_settings,
            probe=mock_reaction_probe,
        )

    def test_returns_matching_event(
        self, mock_connection, sync_settings, mock_reaction_probe
    ):
        event = _update("user", "admin")
        ctx = self._context(event, mock_connection, sync_settings, mock_reaction_probe)

        assert ctx.require_event("update_claims", RowOperation.UPDATE) is event

    def test_raises_without_event(
        self, mock_connection, sync_settings, mock_reaction_probe
    ):
        ctx = self._context(None, mock_connection, sync_settings, mock_reaction_probe)

        with pytest.raises(InvalidInvocationContextError) as exc_info:
            ctx.require_event("update_claims", RowOperation.UPDATE)

        assert exc_info.value.reaction == "update_claims"
        assert str(exc_info.value).startswith(
            "update_claims can only be called from a trigger"
        )

    def test_raises_on_wrong_operation(
        self, mock_connection, sync_settings, mock_reaction_probe
    ):
        ctx = self._context(
            _update("user", "admin"), mock_connection, sync_settings, mock_reaction_probe
        )

        with pytest.raises(InvalidInvocationContextError, match="expected INSERT"):
            ctx.require_event("initialize_claims", RowOperation.INSERT)
