"""Unit test fixtures with mocked dependencies."""

from unittest.mock import MagicMock, create_autospec

import pytest

from infrastructure.settings import NullRolePolicy, SyncSettings


@pytest.fixture
def sync_settings() -> SyncSettings:
    """Provide role sync settings with the default relation names."""
    return SyncSettings(
        identity_schema="auth",
        identity_table="users",
        claims_column="raw_app_meta_data",
        profile_schema="public",
        profile_table="profiles",
        role_type="role",
        null_role_policy=NullRolePolicy.SET_NULL,
    )


@pytest.fixture
def mock_reaction_probe():
    """Provide a mocked reaction probe."""
    from role_sync.infrastructure.observability import ReactionProbe

    return create_autospec(ReactionProbe, instance=True)


@pytest.fixture
def mock_connection():
    """Provide a mocked sync connection as seen by reactions."""
    conn = MagicMock()
    result = MagicMock()
    result.rowcount = 1
    conn.execute.return_value = result
    return conn
