"""backfill profiles for existing identities

Revision ID: c71d05e3a8f2
Revises: 8b6e4d2a19c5
Create Date: 2026-09-28 11:04:55.730116

Identities created before the reactions existed have no profile and no
role in their claims payload. This migration is idempotent and safe to
re-run.
"""

from typing import Sequence, Union

from alembic import op

from infrastructure.settings import get_sync_settings
from role_sync.infrastructure.reactions.claims import plpgsql_merge_role


# revision identifiers, used by Alembic.
revision: str = "c71d05e3a8f2"
down_revision: Union[str, Sequence[str], None] = "8b6e4d2a19c5"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    settings = get_sync_settings()

    op.execute(
        f"""
        INSERT INTO {settings.profile_relation} (id, created_at)
        SELECT i.id, i.created_at
        FROM {settings.identity_relation} i
        LEFT JOIN {settings.profile_relation} p ON p.id = i.id
        WHERE p.id IS NULL
        """
    )

    # With triggers installed the inserts above already seeded the claims.
    op.execute(
        f"""
        UPDATE {settings.identity_relation}
        SET {settings.claims_column} = {plpgsql_merge_role(settings, role_ref="p.role")}
        FROM {settings.profile_relation} p
        WHERE p.id = {settings.identity_relation}.id
          AND ({settings.claims_column} -> 'role') IS NULL
        """
    )


def downgrade() -> None:
    # Data reconciliation migration: no-op on downgrade.
    pass
