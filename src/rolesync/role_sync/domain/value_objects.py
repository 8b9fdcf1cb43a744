"""Value objects for the role sync domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    """Closed role vocabulary carried by profiles and projected into claims."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def default(cls) -> Role:
        """Role a profile receives when none is set."""
        return cls.USER

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        """Convert a raw value into a Role.

        Raises:
            ValueError: If value is outside the vocabulary
        """
        try:
            return cls(value)
        except ValueError as e:
            allowed = ", ".join(r.value for r in cls)
            raise ValueError(f"Invalid role {value!r}; expected one of: {allowed}") from e


@dataclass(frozen=True)
class IdentityId:
    """Identifier shared by an identity record and its profile.

    The identity store assigns UUIDs; the profile reuses the same value.
    """

    value: uuid.UUID

    def __str__(self) -> str:
        """Return string representation."""
        return str(self.value)

    @classmethod
    def generate(cls) -> IdentityId:
        """Generate a new random IdentityId."""
        return cls(value=uuid.uuid4())

    @classmethod
    def from_string(cls, value: str) -> IdentityId:
        """Create IdentityId from string value.

        Args:
            value: UUID string

        Returns:
            IdentityId instance

        Raises:
            ValueError: If value is not a valid UUID
        """
        try:
            return cls(value=uuid.UUID(value))
        except ValueError as e:
            raise ValueError(f"Invalid IdentityId: {value}") from e


class Grant(StrEnum):
    """Write permissions a capability may carry."""

    CLAIMS_WRITE = "claims:write"


@dataclass(frozen=True)
class Capability:
    """Set of grants held by whoever is executing a write.

    Reactions that must write the claims payload run under the service
    capability, which is distinct from the caller's capability.
    """

    principal: str
    grants: frozenset[Grant] = frozenset()

    def allows(self, grant: Grant) -> bool:
        """Return True if this capability carries the grant."""
        return grant in self.grants


ANONYMOUS_CAPABILITY = Capability(principal="anonymous")

SERVICE_CAPABILITY = Capability(
    principal="role-sync-service",
    grants=frozenset({Grant.CLAIMS_WRITE}),
)
