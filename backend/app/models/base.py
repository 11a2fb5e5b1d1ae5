"""
Foundation API Backend — Shared Model Columns
===============================================

What:  Column mixins reused by every entity.
How:   SQLAlchemy 2.0 declarative mixins; columns are copied onto each
       subclass table.

Notes:
    - UUID primary keys use the generic `Uuid` type: native UUID on
      PostgreSQL, CHAR(32) on SQLite (test suite).
    - updated_at is maintained by the ORM (onupdate). Rows changed through
      raw SQL keep their old value unless a trigger is added.
    - deleted_at marks soft-deleted rows; the user email unique index only
      covers rows where it is NULL.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


class AuditableMixin:
    """created_at / updated_at / deleted_at audit columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
