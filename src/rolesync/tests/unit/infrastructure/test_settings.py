"""Unit tests for infrastructure settings."""

import pytest
from pydantic import ValidationError

from infrastructure.settings import (
    DatabaseSettings,
    NullRolePolicy,
    ReactionBackend,
    Settings,
    SyncSettings,
)


class TestDatabaseSettingsPoolConfiguration:
    """Tests for connection pool configuration."""

    def test_default_pool_settings(self):
        """Should have sensible pool defaults."""
        settings = DatabaseSettings()
        assert settings.pool_min_connections >= 1
        assert settings.pool_max_connections >= settings.pool_min_connections

    def test_pool_max_must_be_greater_than_or_equal_to_min(self):
        """Should validate max >= min."""
        with pytest.raises(ValidationError) as exc_info:
            DatabaseSettings(pool_min_connections=10, pool_max_connections=5)

        assert "pool_max_connections" in str(exc_info.value)

    def test_pool_min_must_be_positive(self):
        """Pool min connections must be >= 1."""
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_min_connections=0)

    def test_connection_string_omits_password(self):
        """connection_string is safe to log."""
        settings = DatabaseSettings(
            host="db", port=6543, database="app", username="u", password="secret"
        )
        assert settings.connection_string == "postgresql://u@db:6543/app"
        assert "secret" not in settings.connection_string


class TestDatabaseSettingsFromEnvironment:
    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("ROLESYNC_DB_HOST", "pg.internal")
        monkeypatch.setenv("ROLESYNC_DB_PORT", "5433")

        settings = DatabaseSettings()

        assert settings.host == "pg.internal"
        assert settings.port == 5433


class TestSyncSettings:
    """Tests for role sync settings."""

    def test_defaults_match_identity_store_layout(self):
        settings = SyncSettings()

        assert settings.reaction_backend is ReactionBackend.DATABASE
        assert settings.null_role_policy is NullRolePolicy.SET_NULL
        assert settings.identity_relation == "auth.users"
        assert settings.claims_column == "raw_app_meta_data"
        assert settings.profile_relation == "public.profiles"
        assert settings.qualified_role_type == "public.role"

    def test_reads_backend_from_environment(self, monkeypatch):
        monkeypatch.setenv("ROLESYNC_SYNC_REACTION_BACKEND", "application")
        monkeypatch.setenv("ROLESYNC_SYNC_NULL_ROLE_POLICY", "remove")

        settings = SyncSettings()

        assert settings.reaction_backend is ReactionBackend.APPLICATION
        assert settings.null_role_policy is NullRolePolicy.REMOVE

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            SyncSettings(reaction_backend="cron")

    @pytest.mark.parametrize(
        "field",
        ["identity_schema", "identity_table", "claims_column", "profile_table"],
    )
    def test_rejects_non_identifier_names(self, field):
        """Names end up in DDL and must be plain identifiers."""
        with pytest.raises(ValidationError) as exc_info:
            SyncSettings(**{field: "users; DROP TABLE x"})

        assert "Invalid SQL identifier" in str(exc_info.value)

    def test_accepts_custom_identifiers(self):
        settings = SyncSettings(profile_schema="app", profile_table="members")
        assert settings.profile_relation == "app.members"


class TestSettings:
    def test_aggregates_sections(self):
        settings = Settings()

        assert isinstance(settings.database, DatabaseSettings)
        assert isinstance(settings.sync, SyncSettings)
        assert settings.log_level == "info"
