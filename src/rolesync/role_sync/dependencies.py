"""Factories for role sync services.

Both services share the session they are handed, so the repositories
and the service's transaction run on the same connection.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from role_sync.application.observability import (
    ClaimsServiceProbe,
    DefaultClaimsServiceProbe,
    DefaultProfileServiceProbe,
    ProfileServiceProbe,
)
from role_sync.application.services import ClaimsService, ProfileService
from role_sync.infrastructure.identity_repository import IdentityRepository
from role_sync.infrastructure.profile_repository import ProfileRepository


def get_profile_service_probe() -> ProfileServiceProbe:
    """Get ProfileServiceProbe instance.

    Returns:
        DefaultProfileServiceProbe instance for observability
    """
    return DefaultProfileServiceProbe()


def get_claims_service_probe() -> ClaimsServiceProbe:
    """Get ClaimsServiceProbe instance."""
    return DefaultClaimsServiceProbe()


def get_profile_service(
    session: AsyncSession, probe: ProfileServiceProbe | None = None
) -> ProfileService:
    """Get ProfileService instance.

    Args:
        session: Database session for transaction management
        probe: Optional profile service probe

    Returns:
        ProfileService instance
    """
    return ProfileService(
        profile_repository=ProfileRepository(session=session),
        session=session,
        probe=probe or get_profile_service_probe(),
    )


def get_claims_service(
    session: AsyncSession, probe: ClaimsServiceProbe | None = None
) -> ClaimsService:
    """Get ClaimsService instance."""
    return ClaimsService(
        identity_repository=IdentityRepository(session=session),
        session=session,
        probe=probe or get_claims_service_probe(),
    )
