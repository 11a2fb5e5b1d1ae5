"""
Foundation API Backend — Auth SQLAlchemy Models
=================================================

What:  ORM models for the tables shared with the external auth service:
       `user`, `account`, `session`, `verification`.
Who:   Written by the auth service (sign-up, sign-in, OTP); read by the
       session dependency; exposed through the generated admin CRUD.

Table Design:
    - user.email is unique among rows that are not soft-deleted
    - account / session rows are removed with their user (ON DELETE CASCADE)
    - session.token is unique; lookups by token are the hot path
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.base import AuditableMixin, UUIDPrimaryKeyMixin


class UserEntity(UUIDPrimaryKeyMixin, AuditableMixin, Base):
    """An account holder. Email is the login identifier."""

    __tablename__ = "user"
    __table_args__ = (
        Index(
            "uq_user_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    image: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)


class AccountEntity(UUIDPrimaryKeyMixin, AuditableMixin, Base):
    """
    A credential or OAuth link belonging to a user.

    provider_id is "credential" for email/password accounts, in which case
    `password` holds the auth service's hash.
    """

    __tablename__ = "account"
    __table_args__ = (Index("ix_account_user_id", "user_id"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)
    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    access_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    scope: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    id_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    password: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)


class SessionEntity(UUIDPrimaryKeyMixin, AuditableMixin, Base):
    """A signed-in device. `token` is what the client presents."""

    __tablename__ = "session"
    __table_args__ = (
        Index("ix_session_user_id", "user_id"),
        Index("ix_session_expires_at", "expires_at"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # IPv6 fits in 45 characters
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class VerificationEntity(UUIDPrimaryKeyMixin, AuditableMixin, Base):
    """Short-lived verification values (OTP codes, email links)."""

    __tablename__ = "verification"
    __table_args__ = (Index("ix_verification_identifier", "identifier"),)

    identifier: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
