"""create role enum and profiles table

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-09-28 10:12:41.503218

Creates the role enum type and the profiles table. Each profile shares
its id with an identity record; the foreign key cascades updates and
deletes from the identity store.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from infrastructure.settings import get_sync_settings
from role_sync.domain.value_objects import Role


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the role type and the profiles table.

    Key constraints:
    - id is both primary key and FK to the identity relation (CASCADE)
    - role is nullable and defaults to 'user'
    """
    settings = get_sync_settings()
    labels = ", ".join(f"'{role.value}'" for role in Role)

    op.execute(f"CREATE SCHEMA IF NOT EXISTS {settings.profile_schema}")
    op.execute(f"CREATE TYPE {settings.qualified_role_type} AS ENUM ({labels})")

    op.create_table(
        settings.profile_table,
        sa.Column(
            "id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey(
                f"{settings.identity_relation}.id",
                name=f"{settings.profile_table}_id_fkey",
                onupdate="CASCADE",
                ondelete="CASCADE",
            ),
            primary_key=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("email", sa.Text, nullable=True),
        sa.Column(
            "role",
            postgresql.ENUM(
                name=settings.role_type,
                schema=settings.profile_schema,
                create_type=False,
            ),
            nullable=True,
            server_default=sa.text(
                f"'{Role.default().value}'::{settings.qualified_role_type}"
            ),
        ),
        schema=settings.profile_schema,
    )


def downgrade() -> None:
    """Drop the profiles table, then the role type."""
    settings = get_sync_settings()
    op.drop_table(settings.profile_table, schema=settings.profile_schema)
    op.execute(f"DROP TYPE IF EXISTS {settings.qualified_role_type}")
