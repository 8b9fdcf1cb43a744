"""Profile application service for the role sync bounded context.

Owns the role-change use case. Writing the role is all it does; projecting
the role into the identity's claims payload happens in the same
transaction through the claims reactions.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from role_sync.application.observability import (
    DefaultProfileServiceProbe,
    ProfileServiceProbe,
)
from role_sync.domain.aggregates import Profile
from role_sync.domain.value_objects import IdentityId, Role
from role_sync.ports.exceptions import InvalidRoleError, ProfileNotFoundError
from role_sync.ports.repositories import IProfileRepository


class ProfileService:
    """Application service for profile management."""

    def __init__(
        self,
        profile_repository: IProfileRepository,
        session: AsyncSession,
        probe: ProfileServiceProbe | None = None,
    ):
        """Initialize ProfileService with dependencies.

        Args:
            profile_repository: Repository for profile persistence
            session: Database session for transaction management
            probe: Optional domain probe for observability
        """
        self._profile_repository = profile_repository
        self._session = session
        self._probe = probe or DefaultProfileServiceProbe()

    async def get_profile(self, profile_id: IdentityId) -> Profile | None:
        """Retrieve a profile by its identifier.

        Returns:
            The Profile, or None if not found
        """
        return await self._profile_repository.get_by_id(profile_id)

    async def change_role(
        self, profile_id: IdentityId, role: Role | str | None
    ) -> Profile:
        """Change a profile's role.

        Takes a row lock on the profile for the duration of the transaction.
        An unchanged role is not written, so the claims payload is left alone.
        Passing None unsets the role.

        Args:
            profile_id: The profile to update
            role: The new role, or None

        Returns:
            The updated Profile

        Raises:
            InvalidRoleError: If role is outside the vocabulary
            ProfileNotFoundError: If the profile does not exist
        """
        if role is None:
            new_role = None
        else:
            try:
                new_role = Role.parse(role)
            except ValueError as e:
                self._probe.invalid_role_rejected(str(profile_id), str(role))
                raise InvalidRoleError(str(e)) from e

        try:
            async with self._session.begin():
                profile = await self._profile_repository.get_by_id(
                    profile_id, for_update=True
                )
                if profile is None:
                    raise ProfileNotFoundError(f"Profile {profile_id} not found")

                old_role = profile.role
                if not profile.change_role(new_role):
                    self._probe.role_unchanged(
                        str(profile_id), old_role.value if old_role else None
                    )
                    return profile

                await self._profile_repository.save(profile)

            self._probe.role_changed(
                str(profile_id),
                old_role=old_role.value if old_role else None,
                new_role=new_role.value if new_role else None,
            )
            return profile

        except Exception as e:
            self._probe.role_change_failed(str(profile_id), error=str(e))
            raise
