"""Integration tests for the role sync reactions.

Every test runs once per reaction backend (see the ``backend`` fixture).
"""

import asyncio
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy import insert, select, text
from sqlalchemy.exc import DBAPIError, IntegrityError

from infrastructure.settings import NullRolePolicy, ReactionBackend, get_sync_settings
from role_sync.application.services import ClaimsService, ProfileService
from role_sync.domain.aggregates import Identity
from role_sync.domain.value_objects import IdentityId, Role
from role_sync.infrastructure.identity_repository import IdentityRepository
from role_sync.infrastructure.models import identity_table, profile_table
from role_sync.infrastructure.profile_repository import ProfileRepository
from role_sync.infrastructure.reactions.events import Relation, RowEvent, RowOperation
from role_sync.infrastructure.reactions.handlers import MIRROR_IDENTITY
from role_sync.infrastructure.reactions.orm_backend import (
    reactions_installed,
    remove_reactions,
)
from role_sync.infrastructure.reactions.registry import REACTIONS, ReactionDispatcher
from role_sync.infrastructure.reactions.trigger_ddl import (
    TriggerInstaller,
    function_name,
)

pytestmark = pytest.mark.integration

SIGNUP_CLAIMS = {"provider": "email", "providers": ["email"]}


async def sign_up(session_factory, claims=None) -> IdentityId:
    """Insert an identity record the way an embedded identity store would."""
    identity = Identity(
        id=IdentityId.generate(),
        created_at=datetime.now(UTC),
        claims=claims,
    )
    async with session_factory() as session:
        async with session.begin():
            await IdentityRepository(session).add(identity)
    return identity.id


async def read_claims(session_factory, identity_id: IdentityId) -> dict:
    async with session_factory() as session:
        return await ClaimsService(IdentityRepository(session), session).get_claims(
            identity_id
        )


async def change_role(session_factory, identity_id: IdentityId, role):
    async with session_factory() as session:
        service = ProfileService(ProfileRepository(session), session)
        return await service.change_role(identity_id, role)


async def tamper_claims(engine, identity_id: IdentityId, role: str) -> None:
    async with engine.begin() as conn:
        await conn.execute(
            text(
                "UPDATE auth.users "
                "SET raw_app_meta_data = jsonb_set(raw_app_meta_data, '{role}', to_jsonb(CAST(:role AS text))) "
                "WHERE id = :id"
            ),
            {"role": role, "id": identity_id.value},
        )


@pytest.mark.asyncio
class TestIdentityCreation:
    async def test_signup_mirrors_profile_with_default_role(
        self, backend, session_factory
    ):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))

        async with session_factory() as session:
            profile = await ProfileRepository(session).get_by_id(identity_id)

        assert profile is not None
        assert profile.role == Role.USER
        assert profile.email is None

    async def test_signup_merges_role_keeping_existing_claims(
        self, backend, session_factory
    ):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))

        claims = await read_claims(session_factory, identity_id)

        assert claims == {**SIGNUP_CLAIMS, "role": "user"}

    async def test_signup_without_claims_seeds_payload(
        self, backend, session_factory
    ):
        identity_id = await sign_up(session_factory, claims=None)

        claims = await read_claims(session_factory, identity_id)

        assert claims == {"role": "user"}

    async def test_profile_shares_created_at_with_identity(
        self, backend, engine, session_factory
    ):
        identity_id = await sign_up(session_factory)

        async with engine.connect() as conn:
            row = (
                await conn.execute(
                    select(identity_table.c.created_at, profile_table.c.created_at)
                    .join(profile_table, profile_table.c.id == identity_table.c.id)
                    .where(identity_table.c.id == identity_id.value)
                )
            ).one()

        assert row[0] == row[1]


@pytest.mark.asyncio
class TestRoleChange:
    async def test_promote_and_demote_round_trip(self, backend, session_factory):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))

        await change_role(session_factory, identity_id, Role.ADMIN)
        assert (await read_claims(session_factory, identity_id))["role"] == "admin"

        await change_role(session_factory, identity_id, "user")
        claims = await read_claims(session_factory, identity_id)
        assert claims == {**SIGNUP_CLAIMS, "role": "user"}

    async def test_unset_role_projects_json_null(self, backend, session_factory):
        identity_id = await sign_up(session_factory)

        profile = await change_role(session_factory, identity_id, None)

        assert profile.role is None
        claims = await read_claims(session_factory, identity_id)
        assert "role" in claims
        assert claims["role"] is None

    async def test_same_role_leaves_claims_untouched(
        self, backend, engine, session_factory
    ):
        identity_id = await sign_up(session_factory)
        await tamper_claims(engine, identity_id, "tampered")

        await change_role(session_factory, identity_id, Role.USER)

        assert (await read_claims(session_factory, identity_id))["role"] == "tampered"

    async def test_email_only_update_leaves_claims_untouched(
        self, backend, engine, session_factory
    ):
        identity_id = await sign_up(session_factory)
        await tamper_claims(engine, identity_id, "tampered")

        async with session_factory() as session:
            repository = ProfileRepository(session)
            async with session.begin():
                profile = await repository.get_by_id(identity_id, for_update=True)
                profile.email = "someone@example.com"
                await repository.save(profile)

        assert (await read_claims(session_factory, identity_id))["role"] == "tampered"

    async def test_sql_update_to_same_role_is_filtered_by_guard(
        self, backend, engine, session_factory
    ):
        if backend is not ReactionBackend.DATABASE:
            pytest.skip("raw SQL updates bypass the application backend")

        identity_id = await sign_up(session_factory)
        await tamper_claims(engine, identity_id, "tampered")

        async with engine.begin() as conn:
            await conn.execute(
                text("UPDATE public.profiles SET role = 'user' WHERE id = :id"),
                {"id": identity_id.value},
            )

        assert (await read_claims(session_factory, identity_id))["role"] == "tampered"

    async def test_concurrent_role_changes_end_consistent(
        self, backend, engine, session_factory
    ):
        identity_id = await sign_up(session_factory)

        await asyncio.gather(
            change_role(session_factory, identity_id, Role.ADMIN),
            change_role(session_factory, identity_id, Role.USER),
            change_role(session_factory, identity_id, Role.ADMIN),
        )

        async with engine.connect() as conn:
            profile_role = (
                await conn.execute(
                    select(profile_table.c.role).where(
                        profile_table.c.id == identity_id.value
                    )
                )
            ).scalar_one()
        claims = await read_claims(session_factory, identity_id)
        assert claims["role"] == profile_role.value


@pytest.mark.asyncio
class TestReactionFailures:
    async def test_duplicate_mirror_aborts_transaction(
        self, backend, engine, sync_settings
    ):
        if backend is not ReactionBackend.APPLICATION:
            pytest.skip("the trigger fires once per inserted identity")

        identity_id = IdentityId.generate()
        created_at = datetime.now(UTC)

        def mirror_twice(sync_conn):
            sync_conn.execute(
                insert(identity_table).values(
                    id=identity_id.value, created_at=created_at
                )
            )
            dispatcher = ReactionDispatcher(settings=sync_settings)
            event = RowEvent(
                relation=Relation.IDENTITY,
                operation=RowOperation.INSERT,
                new={"id": identity_id.value, "created_at": created_at},
            )
            dispatcher.dispatch(sync_conn, event)
            dispatcher.dispatch(sync_conn, event)

        with pytest.raises(IntegrityError):
            async with engine.begin() as conn:
                await conn.run_sync(mirror_twice)

        async with engine.connect() as conn:
            count = (
                await conn.execute(
                    select(identity_table.c.id).where(
                        identity_table.c.id == identity_id.value
                    )
                )
            ).all()
        assert count == []

    async def test_trigger_function_cannot_be_called_directly(
        self, backend, engine, sync_settings
    ):
        """PostgreSQL rejects the call before any function body runs."""
        if backend is not ReactionBackend.DATABASE:
            pytest.skip("only the database backend installs trigger functions")

        for reaction in REACTIONS:
            with pytest.raises(DBAPIError):
                async with engine.begin() as conn:
                    await conn.execute(
                        text(f"SELECT {function_name(reaction, sync_settings)}()")
                    )


@pytest.mark.asyncio
class TestLifecycle:
    async def test_deleting_identity_cascades_to_profile(
        self, backend, engine, session_factory
    ):
        identity_id = await sign_up(session_factory)

        async with engine.begin() as conn:
            await conn.execute(
                text("DELETE FROM auth.users WHERE id = :id"),
                {"id": identity_id.value},
            )

        async with session_factory() as session:
            assert await ProfileRepository(session).get_by_id(identity_id) is None

    async def test_drift_is_reported_for_tampered_claims(
        self, backend, engine, session_factory
    ):
        in_sync = await sign_up(session_factory)
        tampered = await sign_up(session_factory)
        await tamper_claims(engine, tampered, "admin")

        async with session_factory() as session:
            drift = await ClaimsService(
                IdentityRepository(session), session
            ).find_drift()

        drifting = {entry.identity_id for entry in drift}
        assert tampered in drifting
        assert in_sync not in drifting

    async def test_removing_reactions_keeps_data(
        self, backend, engine, session_factory, sync_settings
    ):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))

        if backend is ReactionBackend.DATABASE:
            async with engine.begin() as conn:
                await conn.run_sync(
                    lambda sync_conn: TriggerInstaller(
                        sync_conn, settings=sync_settings
                    ).remove()
                )
            async with engine.connect() as conn:
                installed = await conn.run_sync(
                    lambda sync_conn: TriggerInstaller(
                        sync_conn, settings=sync_settings
                    ).installed()
                )
            assert not any(installed.values())
        else:
            remove_reactions()
            assert not reactions_installed()

        async with session_factory() as session:
            assert await ProfileRepository(session).get_by_id(identity_id) is not None
        assert await read_claims(session_factory, identity_id) == {
            **SIGNUP_CLAIMS,
            "role": "user",
        }


LIMITED_APP_ROLE = "rolesync_limited_app"


@pytest_asyncio.fixture
async def limited_app_role(backend, engine, sync_settings):
    """A NOLOGIN role that may read and update profiles, and nothing else."""
    if backend is not ReactionBackend.DATABASE:
        pytest.skip("privileges are enforced by PostgreSQL only")

    async def drop_role():
        async with engine.begin() as conn:
            await conn.execute(
                text(
                    "DO $$\n"
                    "BEGIN\n"
                    "    IF EXISTS (SELECT FROM pg_catalog.pg_roles "
                    f"WHERE rolname = '{LIMITED_APP_ROLE}') THEN\n"
                    f"        DROP OWNED BY {LIMITED_APP_ROLE};\n"
                    f"        DROP ROLE {LIMITED_APP_ROLE};\n"
                    "    END IF;\n"
                    "END\n"
                    "$$"
                )
            )

    await drop_role()
    async with engine.begin() as conn:
        await conn.execute(text(f"CREATE ROLE {LIMITED_APP_ROLE} NOLOGIN"))
        await conn.execute(
            text(
                f"GRANT USAGE ON SCHEMA {sync_settings.profile_schema} "
                f"TO {LIMITED_APP_ROLE}"
            )
        )
        await conn.execute(
            text(
                f"GRANT SELECT, UPDATE ON {sync_settings.profile_relation} "
                f"TO {LIMITED_APP_ROLE}"
            )
        )

    yield LIMITED_APP_ROLE

    await drop_role()


@pytest.mark.asyncio
class TestPrivilegeBoundary:
    async def test_role_change_by_limited_role_updates_claims(
        self, limited_app_role, engine, session_factory
    ):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))

        async with engine.begin() as conn:
            await conn.execute(text(f"SET LOCAL ROLE {limited_app_role}"))
            await conn.execute(
                text("UPDATE public.profiles SET role = 'admin' WHERE id = :id"),
                {"id": identity_id.value},
            )

        assert await read_claims(session_factory, identity_id) == {
            **SIGNUP_CLAIMS,
            "role": "admin",
        }

    async def test_limited_role_cannot_write_claims_directly(
        self, limited_app_role, engine, session_factory
    ):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))

        with pytest.raises(DBAPIError, match="permission denied"):
            async with engine.begin() as conn:
                await conn.execute(text(f"SET LOCAL ROLE {limited_app_role}"))
                await conn.execute(
                    text(
                        "UPDATE auth.users SET raw_app_meta_data = "
                        "raw_app_meta_data || jsonb_build_object('role', 'admin') "
                        "WHERE id = :id"
                    ),
                    {"id": identity_id.value},
                )

        assert (await read_claims(session_factory, identity_id))["role"] == "user"


@pytest.mark.asyncio
class TestTriggerBodyGuard:
    async def test_function_on_wrong_operation_raises(
        self, backend, engine, session_factory, sync_settings
    ):
        if backend is not ReactionBackend.DATABASE:
            pytest.skip("only the database backend installs trigger functions")

        identity_id = await sign_up(session_factory)
        mirror = next(r for r in REACTIONS if r.name == MIRROR_IDENTITY)
        relation = sync_settings.identity_relation

        async with engine.begin() as conn:
            await conn.execute(
                text(
                    f"CREATE TRIGGER misattached_mirror AFTER UPDATE ON {relation} "
                    f"FOR EACH ROW EXECUTE FUNCTION "
                    f"{function_name(mirror, sync_settings)}()"
                )
            )
        try:
            with pytest.raises(
                DBAPIError, match="mirror_identity can only be called from a trigger"
            ):
                async with engine.begin() as conn:
                    await conn.execute(
                        text(
                            f"UPDATE {relation} SET created_at = created_at "
                            "WHERE id = :id"
                        ),
                        {"id": identity_id.value},
                    )
        finally:
            async with engine.begin() as conn:
                await conn.execute(
                    text(f"DROP TRIGGER IF EXISTS misattached_mirror ON {relation}")
                )


@pytest.mark.asyncio
class TestRemoveNullRolePolicy:
    """Runs the reactions with the role key removed for a NULL role."""

    @pytest.fixture
    def sync_settings(self):
        return get_sync_settings().model_copy(
            update={"null_role_policy": NullRolePolicy.REMOVE}
        )

    async def test_unset_role_removes_key_keeping_siblings(
        self, backend, session_factory
    ):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))

        await change_role(session_factory, identity_id, None)

        assert await read_claims(session_factory, identity_id) == SIGNUP_CLAIMS

    async def test_later_role_change_adds_key_back(self, backend, session_factory):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))
        await change_role(session_factory, identity_id, None)

        await change_role(session_factory, identity_id, Role.ADMIN)

        assert await read_claims(session_factory, identity_id) == {
            **SIGNUP_CLAIMS,
            "role": "admin",
        }

    async def test_removed_key_is_not_drift(self, backend, session_factory):
        identity_id = await sign_up(session_factory, claims=dict(SIGNUP_CLAIMS))
        await change_role(session_factory, identity_id, None)

        async with session_factory() as session:
            drift = await IdentityRepository(
                session, null_role_policy=NullRolePolicy.REMOVE
            ).find_claims_drift()

        assert identity_id not in {entry.identity_id for entry in drift}
