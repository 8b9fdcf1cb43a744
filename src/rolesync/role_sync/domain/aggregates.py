"""Domain aggregates for the role sync context.

Aggregates are the core business objects containing state and business logic.
They enforce invariants and business rules without depending on infrastructure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from role_sync.domain.value_objects import IdentityId, Role

CLAIMS_ROLE_KEY = "role"


@dataclass
class Identity:
    """Identity record owned by the external identity store.

    Only the claims payload is ever written by this system, and only its
    "role" key.
    """

    id: IdentityId
    created_at: datetime
    claims: dict[str, Any] | None = None

    @property
    def claims_role(self) -> str | None:
        """Role currently projected into the claims payload, if any."""
        if not self.claims:
            return None
        return self.claims.get(CLAIMS_ROLE_KEY)

    def has_claims_role(self) -> bool:
        """Return True if the claims payload carries a role key (even null)."""
        return bool(self.claims) and CLAIMS_ROLE_KEY in self.claims


@dataclass
class Profile:
    """Application-level mirror of an identity, carrying the user's role.

    Business rules:
    - A profile shares its identifier with exactly one identity
    - The role is drawn from the closed Role vocabulary, or unset
    """

    id: IdentityId
    created_at: datetime
    email: str | None = None
    role: Role | None = field(default_factory=Role.default)

    @classmethod
    def mirror(cls, identity: Identity) -> Profile:
        """Build the profile a freshly created identity receives."""
        return cls(id=identity.id, created_at=identity.created_at)

    def change_role(self, role: Role | None) -> bool:
        """Set a new role.

        Returns:
            True if the role actually changed, False if it was already set
        """
        if self.role == role:
            return False
        self.role = role
        return True


@dataclass(frozen=True)
class ClaimsDrift:
    """An identity whose claims role disagrees with its profile role."""

    identity_id: IdentityId
    profile_role: Role | None
    claims_role: str | None
    claims_role_present: bool
