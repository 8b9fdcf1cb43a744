"""PL/pgSQL bodies of the three role sync reactions.

These are the database-trigger renditions of the handlers in
``handlers.py`` and must keep the same semantics. Relations are always
schema-qualified because the functions run with an empty search_path.
"""

from __future__ import annotations

from infrastructure.settings import SyncSettings
from role_sync.infrastructure.reactions.claims import (
    plpgsql_merge_role,
    plpgsql_set_role,
)


def mirror_identity_body(settings: SyncSettings) -> str:
    return (
        f"INSERT INTO {settings.profile_relation} (id, created_at)\n"
        f"VALUES (NEW.id, NEW.created_at);"
    )


def initialize_claims_body(settings: SyncSettings) -> str:
    return (
        f"UPDATE {settings.identity_relation}\n"
        f"SET {settings.claims_column} = {plpgsql_merge_role(settings)}\n"
        f"WHERE id = NEW.id;"
    )


def update_claims_body(settings: SyncSettings) -> str:
    return (
        f"UPDATE {settings.identity_relation}\n"
        f"SET {settings.claims_column} = {plpgsql_set_role(settings)}\n"
        f"WHERE id = NEW.id;"
    )
