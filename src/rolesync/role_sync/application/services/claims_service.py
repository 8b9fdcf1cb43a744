"""Claims application service for the role sync bounded context.

Read side of the claims projection: the payload an identity carries and
a consistency check against the profiles.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from role_sync.application.observability import (
    ClaimsServiceProbe,
    DefaultClaimsServiceProbe,
)
from role_sync.domain.aggregates import ClaimsDrift
from role_sync.domain.value_objects import IdentityId
from role_sync.ports.exceptions import IdentityNotFoundError
from role_sync.ports.repositories import IIdentityRepository


class ClaimsService:
    """Application service for reading projected claims."""

    def __init__(
        self,
        identity_repository: IIdentityRepository,
        session: AsyncSession,
        probe: ClaimsServiceProbe | None = None,
    ):
        self._identity_repository = identity_repository
        self._session = session
        self._probe = probe or DefaultClaimsServiceProbe()

    async def get_claims(self, identity_id: IdentityId) -> dict[str, Any]:
        """Return the claims payload of an identity.

        A missing payload is returned as an empty dict.

        Raises:
            IdentityNotFoundError: If the identity does not exist
        """
        identity = await self._identity_repository.get_by_id(identity_id)
        if identity is None:
            raise IdentityNotFoundError(f"Identity {identity_id} not found")

        self._probe.claims_read(str(identity_id), identity.claims_role)
        return dict(identity.claims or {})

    async def find_drift(self) -> list[ClaimsDrift]:
        """List identities whose claims role disagrees with their profile role."""
        drift = await self._identity_repository.find_claims_drift()
        for entry in drift:
            self._probe.drift_detected(
                str(entry.identity_id),
                profile_role=entry.profile_role.value if entry.profile_role else None,
                claims_role=entry.claims_role,
            )
        return drift
