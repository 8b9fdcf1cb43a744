"""Repository protocols (ports) for the role sync bounded context.

Repository protocols define the interface for persisting and retrieving
aggregates. Implementations never manage transactions; the application
service that owns the use case does.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from role_sync.domain.aggregates import ClaimsDrift, Identity, Profile
from role_sync.domain.value_objects import IdentityId


@runtime_checkable
class IIdentityRepository(Protocol):
    """Repository for identity records.

    The identity store owns these rows. This repository reads them, and
    writes them only where this code base embeds the identity store.
    """

    async def add(self, identity: Identity) -> None:
        """Insert a new identity record.

        Inserting an identity fires the identity mirror, which creates the
        profile and seeds the claims payload in the same transaction.

        Args:
            identity: The Identity to insert

        Raises:
            IntegrityError: If the identifier is already in use
        """
        ...

    async def get_by_id(self, identity_id: IdentityId) -> Identity | None:
        """Retrieve an identity record with its claims payload.

        Args:
            identity_id: The unique identifier of the identity

        Returns:
            The Identity, or None if not found
        """
        ...

    async def find_claims_drift(self) -> list[ClaimsDrift]:
        """List identities whose claims role disagrees with their profile role.

        Returns:
            One ClaimsDrift per inconsistent identity (empty when in sync)
        """
        ...


@runtime_checkable
class IProfileRepository(Protocol):
    """Repository for profile records."""

    async def add(self, profile: Profile) -> None:
        """Insert a profile for an existing identity.

        Raises:
            IntegrityError: If a profile already exists for the identifier,
                or the parent identity does not exist
        """
        ...

    async def get_by_id(
        self, profile_id: IdentityId, for_update: bool = False
    ) -> Profile | None:
        """Retrieve a profile by its identifier.

        Args:
            profile_id: The identifier shared with the identity record
            for_update: Lock the row until the transaction ends

        Returns:
            The Profile, or None if not found
        """
        ...

    async def save(self, profile: Profile) -> None:
        """Persist changes to an existing profile.

        A role change fires the claims updater in the same transaction.

        Raises:
            ProfileNotFoundError: If the profile does not exist
        """
        ...
