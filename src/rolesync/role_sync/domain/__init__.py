"""Domain layer for the role sync bounded context."""

from role_sync.domain.aggregates import ClaimsDrift, Identity, Profile
from role_sync.domain.value_objects import (
    ANONYMOUS_CAPABILITY,
    SERVICE_CAPABILITY,
    Capability,
    Grant,
    IdentityId,
    Role,
)

__all__ = [
    "ANONYMOUS_CAPABILITY",
    "SERVICE_CAPABILITY",
    "Capability",
    "ClaimsDrift",
    "Grant",
    "Identity",
    "IdentityId",
    "Profile",
    "Role",
]
