"""Credential model: the single persisted record of the auth core."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, validates

from bearchat.core.extensions import db

from .base import ReprMixin, TimestampMixin


def new_user_id() -> str:
    """Return a fresh opaque user identifier (random UUID4 string)."""
    return str(uuid.uuid4())


class Credential(ReprMixin, TimestampMixin, db.Model):
    """
    Login identity shared by every BearChat service.

    Fields
    ------
    user_id : str
        Opaque identifier embedded in session tokens. Never derived from
        user input.
    username : str
        Public handle used to sign in. Stored trimmed; unique.
    email : str
        Contact address. Stored trimmed and lower-cased; unique.
    password_hash : str
        Output of the configured ``PasswordHasher``; never the raw password.
    verified : bool
        Whether the signup verification token has been consumed.
    verification_token : str
        Pending verification token, ``""`` when none.
    reset_token : str
        Pending password reset token, ``""`` when none.
    verification_token_issued_at, reset_token_issued_at : datetime | None
        Issue timestamps used to expire the flow tokens.
    """

    __tablename__ = "credentials"
    __repr_key__ = "user_id"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_user_id)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    verification_token: Mapped[str] = mapped_column(
        String(64), nullable=False, default="", server_default=""
    )
    verification_token_issued_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reset_token: Mapped[str] = mapped_column(
        String(64), nullable=False, default="", server_default=""
    )
    reset_token_issued_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("username", name="uq_credentials_username"),
        UniqueConstraint("email", name="uq_credentials_email"),
        Index("ix_credentials_verification_token", "verification_token"),
        Index("ix_credentials_reset_token", "reset_token"),
    )

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and minimally validate the email address.

        :raises ValueError: If the email is missing or has no domain part.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        return value.strip()

    @validates("password_hash")
    def _require_hash(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Password hash is required.")
        return value
