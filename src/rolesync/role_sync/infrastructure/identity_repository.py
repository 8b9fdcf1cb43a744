"""PostgreSQL implementation of IIdentityRepository.

Reads identity records and their claims payload. Inserting is only used
where the identity store is embedded in this code base; the claims payload
itself is only ever written by the claims reactions.
"""

from __future__ import annotations

from sqlalchemy import Text, case, cast, false, func, not_, select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.settings import NullRolePolicy, get_sync_settings
from role_sync.domain.aggregates import CLAIMS_ROLE_KEY, ClaimsDrift, Identity
from role_sync.domain.value_objects import IdentityId
from role_sync.infrastructure.models import IdentityModel, ProfileModel
from role_sync.infrastructure.observability import (
    DefaultIdentityRepositoryProbe,
    IdentityRepositoryProbe,
)
from role_sync.ports.repositories import IIdentityRepository


class IdentityRepository(IIdentityRepository):
    """PostgreSQL-backed repository for identity records.

    Does not manage transactions; callers wrap writes in
    ``async with session.begin()``.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: IdentityRepositoryProbe | None = None,
        null_role_policy: NullRolePolicy | None = None,
    ) -> None:
        """Initialize repository with database session and probe.

        Args:
            session: AsyncSession owned by the caller
            probe: Optional domain probe for observability
            null_role_policy: Projection of NULL roles (default: from settings)
        """
        self._session = session
        self._probe = probe or DefaultIdentityRepositoryProbe()
        self._null_role_policy = (
            null_role_policy or get_sync_settings().null_role_policy
        )

    async def add(self, identity: Identity) -> None:
        """Insert an identity record and flush it.

        Flushing makes the insert, and the reactions it fires, happen
        now rather than at commit.
        """
        model = IdentityModel(
            id=identity.id.value,
            created_at=identity.created_at,
            claims=identity.claims,
        )
        self._session.add(model)
        await self._session.flush()

        self._probe.identity_added(str(identity.id))

    async def get_by_id(self, identity_id: IdentityId) -> Identity | None:
        """Retrieve an identity record with a freshly read claims payload.

        Args:
            identity_id: The unique identifier of the identity

        Returns:
            The Identity, or None if not found
        """
        # Reactions write claims behind the ORM's back; always reload.
        stmt = (
            select(IdentityModel)
            .where(IdentityModel.id == identity_id.value)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            self._probe.identity_not_found(str(identity_id))
            return None

        self._probe.identity_retrieved(str(identity_id))
        return Identity(
            id=IdentityId(value=model.id),
            created_at=model.created_at,
            claims=model.claims,
        )

    async def find_claims_drift(self) -> list[ClaimsDrift]:
        """List identities whose claims role disagrees with their profile role.

        What counts as agreement for a NULL profile role follows the null
        role policy: a JSON null under "set_null", no key under "remove".
        """
        claims_role = IdentityModel.claims[CLAIMS_ROLE_KEY].astext
        has_role_key = func.coalesce(
            IdentityModel.claims.has_key(CLAIMS_ROLE_KEY), false()
        )
        profile_role = cast(ProfileModel.role, Text)

        if self._null_role_policy is NullRolePolicy.REMOVE:
            null_role_drift = has_role_key
        else:
            null_role_drift = not_(has_role_key) | claims_role.is_not(None)

        stmt = (
            select(
                IdentityModel.id,
                ProfileModel.role,
                claims_role.label("claims_role"),
                has_role_key.label("has_role_key"),
            )
            .join(ProfileModel, ProfileModel.id == IdentityModel.id)
            .where(
                case(
                    (
                        ProfileModel.role.is_(None),
                        null_role_drift,
                    ),
                    else_=not_(has_role_key)
                    | claims_role.is_distinct_from(profile_role),
                )
            )
            .order_by(IdentityModel.id)
        )
        result = await self._session.execute(stmt)

        drift = [
            ClaimsDrift(
                identity_id=IdentityId(value=row.id),
                profile_role=row.role,
                claims_role=row.claims_role,
                claims_role_present=bool(row.has_role_key),
            )
            for row in result
        ]
        self._probe.claims_drift_scanned(len(drift))
        return drift
