"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

import re
from enum import StrEnum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SQL_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class ReactionBackend(StrEnum):
    """Mechanism that executes the role sync reactions."""

    DATABASE = "database"
    APPLICATION = "application"


class NullRolePolicy(StrEnum):
    """How a NULL profile role is projected into the claims payload."""

    SET_NULL = "set_null"
    REMOVE = "remove"


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        ROLESYNC_DB_HOST: Database host (default: localhost)
        ROLESYNC_DB_PORT: Database port (default: 5432)
        ROLESYNC_DB_DATABASE: Database name (default: rolesync)
        ROLESYNC_DB_USERNAME: Database user (default: rolesync)
        ROLESYNC_DB_PASSWORD: Database password (required in production)
        ROLESYNC_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        ROLESYNC_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        ROLESYNC_DB_ECHO: Log emitted SQL (default: false)
    """

    model_config = SettingsConfigDict(
        env_prefix="ROLESYNC_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="rolesync", description="Database name")
    username: str = Field(default="rolesync", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    echo: bool = Field(default=False, description="Log emitted SQL")

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class SyncSettings(BaseSettings):
    """Role synchronization settings.

    Environment variables:
        ROLESYNC_SYNC_REACTION_BACKEND: "database" triggers or "application"
            ORM events (default: database)
        ROLESYNC_SYNC_NULL_ROLE_POLICY: "set_null" keeps a null role key in the
            claims payload, "remove" deletes the key (default: set_null)
        ROLESYNC_SYNC_IDENTITY_SCHEMA: Schema of the identity relation (default: auth)
        ROLESYNC_SYNC_IDENTITY_TABLE: Identity relation (default: users)
        ROLESYNC_SYNC_CLAIMS_COLUMN: Claims payload column (default: raw_app_meta_data)
        ROLESYNC_SYNC_PROFILE_SCHEMA: Schema of the profile relation (default: public)
        ROLESYNC_SYNC_PROFILE_TABLE: Profile relation (default: profiles)
        ROLESYNC_SYNC_ROLE_TYPE: Name of the role enum type (default: role)
    """

    model_config = SettingsConfigDict(
        env_prefix="ROLESYNC_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    reaction_backend: ReactionBackend = Field(
        default=ReactionBackend.DATABASE,
        description="Mechanism that executes the reactions",
    )
    null_role_policy: NullRolePolicy = Field(
        default=NullRolePolicy.SET_NULL,
        description="Projection of a NULL profile role into the claims payload",
    )
    identity_schema: str = Field(default="auth", description="Identity schema")
    identity_table: str = Field(default="users", description="Identity table")
    claims_column: str = Field(
        default="raw_app_meta_data",
        description="Claims payload column on the identity table",
    )
    profile_schema: str = Field(default="public", description="Profile schema")
    profile_table: str = Field(default="profiles", description="Profile table")
    role_type: str = Field(default="role", description="Role enum type name")

    @field_validator(
        "identity_schema",
        "identity_table",
        "claims_column",
        "profile_schema",
        "profile_table",
        "role_type",
    )
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        """Names are interpolated into DDL, so only plain identifiers are allowed."""
        if not _SQL_IDENTIFIER.match(value):
            raise ValueError(f"Invalid SQL identifier: {value!r}")
        return value

    @property
    def identity_relation(self) -> str:
        """Schema-qualified identity relation."""
        return f"{self.identity_schema}.{self.identity_table}"

    @property
    def profile_relation(self) -> str:
        """Schema-qualified profile relation."""
        return f"{self.profile_schema}.{self.profile_table}"

    @property
    def qualified_role_type(self) -> str:
        """Schema-qualified role enum type (lives beside the profile table)."""
        return f"{self.profile_schema}.{self.role_type}"


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="ROLESYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="rolesync", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="info", description="Minimum log level")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def sync(self) -> SyncSettings:
        """Get role synchronization settings."""
        return get_sync_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_sync_settings() -> SyncSettings:
    """Get cached role synchronization settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return SyncSettings()
