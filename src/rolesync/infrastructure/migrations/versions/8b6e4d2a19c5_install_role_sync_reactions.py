"""install role sync reactions

Revision ID: 8b6e4d2a19c5
Revises: 3f2a9c1d7b40
Create Date: 2026-09-28 10:31:07.118942

Installs the identity mirror, claims initializer and claims updater as
PostgreSQL trigger functions and triggers. Skipped when the reactions run
in the application instead. Downgrading drops only the triggers and
functions; profiles and claims payloads are left as they are.
"""

from typing import Sequence, Union

from alembic import op

from infrastructure.observability import DefaultMigrationProbe
from infrastructure.settings import ReactionBackend, get_sync_settings
from role_sync.infrastructure.reactions.trigger_ddl import TriggerInstaller


# revision identifiers, used by Alembic.
revision: str = "8b6e4d2a19c5"
down_revision: Union[str, Sequence[str], None] = "3f2a9c1d7b40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create trigger functions and triggers (database backend only)."""
    settings = get_sync_settings()
    if settings.reaction_backend is not ReactionBackend.DATABASE:
        DefaultMigrationProbe().reactions_skipped(settings.reaction_backend.value)
        return

    TriggerInstaller(op.get_bind(), settings=settings).install()


def downgrade() -> None:
    """Drop triggers, then their functions."""
    TriggerInstaller(op.get_bind(), settings=get_sync_settings()).remove()
