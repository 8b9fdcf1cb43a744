"""PostgreSQL implementation of IProfileRepository.

Profiles are written through the ORM so that, under the application
reaction backend, inserts and role changes fire their reactions during
flush.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from role_sync.domain.aggregates import Profile
from role_sync.domain.value_objects import IdentityId
from role_sync.infrastructure.models import ProfileModel
from role_sync.infrastructure.observability import (
    DefaultProfileRepositoryProbe,
    ProfileRepositoryProbe,
)
from role_sync.ports.exceptions import ProfileNotFoundError
from role_sync.ports.repositories import IProfileRepository


class ProfileRepository(IProfileRepository):
    """PostgreSQL-backed repository for Profile aggregates.

    Does not manage transactions; callers wrap writes in
    ``async with session.begin()``.
    """

    def __init__(
        self, session: AsyncSession, probe: ProfileRepositoryProbe | None = None
    ) -> None:
        """Initialize repository with database session and probe.

        Args:
            session: AsyncSession owned by the caller
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultProfileRepositoryProbe()

    async def add(self, profile: Profile) -> None:
        """Insert a profile for an existing identity and flush it."""
        model = ProfileModel(
            id=profile.id.value,
            created_at=profile.created_at,
            email=profile.email,
            role=profile.role,
        )
        self._session.add(model)
        await self._session.flush()

        self._probe.profile_added(str(profile.id))

    async def get_by_id(
        self, profile_id: IdentityId, for_update: bool = False
    ) -> Profile | None:
        """Retrieve a profile by its identifier.

        Args:
            profile_id: The identifier shared with the identity record
            for_update: Take a row lock held until the transaction ends

        Returns:
            The Profile aggregate, or None if not found
        """
        model = await self._load(profile_id, for_update=for_update)

        if model is None:
            self._probe.profile_not_found(str(profile_id))
            return None

        self._probe.profile_retrieved(str(profile_id))
        return Profile(
            id=IdentityId(value=model.id),
            created_at=model.created_at,
            email=model.email,
            role=model.role,
        )

    async def save(self, profile: Profile) -> None:
        """Persist email and role changes of an existing profile.

        The UPDATE is flushed immediately; an unchanged role is not written
        and therefore fires nothing.

        Raises:
            ProfileNotFoundError: If the profile does not exist
        """
        model = await self._load(profile.id)
        if model is None:
            self._probe.profile_not_found(str(profile.id))
            raise ProfileNotFoundError(f"Profile {profile.id} not found")

        model.email = profile.email
        model.role = profile.role
        await self._session.flush()

        self._probe.profile_saved(
            str(profile.id), profile.role.value if profile.role else None
        )

    async def _load(
        self, profile_id: IdentityId, for_update: bool = False
    ) -> ProfileModel | None:
        stmt = select(ProfileModel).where(ProfileModel.id == profile_id.value)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
