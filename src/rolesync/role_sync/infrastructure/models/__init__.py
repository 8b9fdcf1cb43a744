"""SQLAlchemy ORM models for the role sync bounded context.

These models map to database tables and are used by repository implementations
and by the application reaction backend.
"""

from role_sync.infrastructure.models.identity import (
    IdentityModel,
    claims_column,
    identity_table,
)
from role_sync.infrastructure.models.profile import (
    ProfileModel,
    profile_table,
    role_enum,
)

__all__ = [
    "IdentityModel",
    "ProfileModel",
    "claims_column",
    "identity_table",
    "profile_table",
    "role_enum",
]
