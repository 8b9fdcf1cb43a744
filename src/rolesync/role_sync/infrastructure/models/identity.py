"""SQLAlchemy ORM model for the identity store's users table.

The identity store owns this table. It is mapped here so the claims payload
can be read and patched, and so an embedded identity store can insert rows
through the ORM. Migrations never create or drop it.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, utc_now
from infrastructure.settings import get_sync_settings

_settings = get_sync_settings()


class IdentityModel(Base):
    """ORM model for identity records.

    Notes:
    - claims maps to the claims payload column (raw_app_meta_data by default)
    - claims is NULL until the claims initializer seeds it; None is stored
      as SQL NULL, never as a JSON null document
    """

    __tablename__ = _settings.identity_table
    __table_args__ = {"schema": _settings.identity_schema, "info": {"external": True}}

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=utc_now,
        nullable=False,
    )
    claims: Mapped[dict[str, Any] | None] = mapped_column(
        _settings.claims_column,
        JSONB(none_as_null=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<IdentityModel(id={self.id})>"


identity_table = IdentityModel.__table__
claims_column = identity_table.c[_settings.claims_column]
