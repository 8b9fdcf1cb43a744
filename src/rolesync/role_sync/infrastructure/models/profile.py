"""SQLAlchemy ORM model for the profiles table.

One profile per identity record, sharing its identifier. The role column
is a PostgreSQL enum restricted to the Role vocabulary.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base
from infrastructure.settings import get_sync_settings
from role_sync.domain.value_objects import Role

_settings = get_sync_settings()

role_enum = Enum(
    Role,
    name=_settings.role_type,
    schema=_settings.profile_schema,
    values_callable=lambda roles: [role.value for role in roles],
    validate_strings=True,
    create_type=False,
)


class ProfileModel(Base):
    """ORM model for profiles table.

    Foreign Key Constraint:
    - id references the identity table with CASCADE on update and delete,
      so a profile exists exactly as long as its identity

    The role column uses active_history so the previous role is loaded
    before it is overwritten; the claims updater's guard compares both.
    """

    __tablename__ = _settings.profile_table
    __table_args__ = {"schema": _settings.profile_schema}

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(
            f"{_settings.identity_relation}.id",
            onupdate="CASCADE",
            ondelete="CASCADE",
        ),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[Role | None] = mapped_column(
        role_enum,
        nullable=True,
        default=Role.USER,
        server_default=Role.USER.value,
        active_history=True,
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<ProfileModel(id={self.id}, role={self.role})>"


profile_table = ProfileModel.__table__
