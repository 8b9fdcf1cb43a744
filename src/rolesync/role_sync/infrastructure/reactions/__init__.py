"""Role sync reactions: identity mirror, claims initializer, claims updater.

The reactions are declared once in ``registry`` and executed either by
PostgreSQL triggers (``trigger_ddl``) or by SQLAlchemy mapper events
(``orm_backend``).
"""

from role_sync.infrastructure.reactions.claims import ClaimsWriter
from role_sync.infrastructure.reactions.events import (
    ReactionContext,
    Relation,
    RowEvent,
    RowOperation,
)
from role_sync.infrastructure.reactions.handlers import (
    INITIALIZE_CLAIMS,
    MIRROR_IDENTITY,
    UPDATE_CLAIMS,
    initialize_claims,
    mirror_identity,
    update_claims,
)
from role_sync.infrastructure.reactions.registry import (
    REACTIONS,
    Guard,
    Reaction,
    ReactionDispatcher,
)

__all__ = [
    "ClaimsWriter",
    "Guard",
    "INITIALIZE_CLAIMS",
    "MIRROR_IDENTITY",
    "REACTIONS",
    "Reaction",
    "ReactionContext",
    "ReactionDispatcher",
    "Relation",
    "RowEvent",
    "RowOperation",
    "UPDATE_CLAIMS",
    "initialize_claims",
    "mirror_identity",
    "update_claims",
]
