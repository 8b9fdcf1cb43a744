"""Python bodies of the three role sync reactions.

Each handler runs on the triggering transaction's connection and refuses
to run without the row event it is attached to.
"""

from __future__ import annotations

from sqlalchemy import insert

from role_sync.infrastructure.models import profile_table
from role_sync.infrastructure.reactions.claims import ClaimsWriter
from role_sync.infrastructure.reactions.events import (
    ReactionContext,
    Relation,
    RowEvent,
    RowOperation,
)

MIRROR_IDENTITY = "mirror_identity"
INITIALIZE_CLAIMS = "initialize_claims"
UPDATE_CLAIMS = "update_claims"


def mirror_identity(ctx: ReactionContext) -> None:
    """Create the profile of a newly inserted identity.

    Only id and created_at are copied; every other column takes its default.
    A second firing for the same identity violates the profile primary key
    and the IntegrityError aborts the transaction.
    """
    event = ctx.require_event(MIRROR_IDENTITY, RowOperation.INSERT)

    stmt = (
        insert(profile_table)
        .values(id=event.new["id"], created_at=event.new["created_at"])
        .returning(*profile_table.c)
    )
    row = ctx.connection.execute(stmt).mappings().one()
    ctx.probe.profile_mirrored(str(row["id"]))

    # The profile insert is itself a row event.
    if ctx.dispatcher is not None:
        ctx.dispatcher.dispatch(
            ctx.connection,
            RowEvent(
                relation=Relation.PROFILE,
                operation=RowOperation.INSERT,
                new=dict(row),
            ),
            capability=ctx.capability,
        )


def initialize_claims(ctx: ReactionContext) -> None:
    """Merge a new profile's role into its identity's claims payload."""
    event = ctx.require_event(INITIALIZE_CLAIMS, RowOperation.INSERT)

    writer = ClaimsWriter(
        ctx.connection, ctx.capability, ctx.settings.null_role_policy, ctx.probe
    )
    writer.merge_role(event.new["id"], event.new.get("role"))


def update_claims(ctx: ReactionContext) -> None:
    """Set the claims payload's role key to a profile's new role."""
    event = ctx.require_event(UPDATE_CLAIMS, RowOperation.UPDATE)

    writer = ClaimsWriter(
        ctx.connection, ctx.capability, ctx.settings.null_role_policy, ctx.probe
    )
    writer.set_role(event.new["id"], event.new.get("role"))
