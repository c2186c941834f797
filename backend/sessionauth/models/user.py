"""User account model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from sessionauth.core.extensions import db

from .base import PKMixin, ReprMixin, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from .session import RefreshSession

_LIVE_ROWS = "deleted_at IS NULL"


class User(PKMixin, ReprMixin, TimestampMixin, SoftDeleteMixin, db.Model):
    """
    Registered account able to authenticate and hold refresh sessions.

    Fields
    ------
    login : str
        Public handle used to sign in. Unique among live accounts.
    email : str
        Contact email. Stored normalized (lowercase, trimmed), unique among
        live accounts.
    password_hash : str
        Output of the configured password hasher; never the raw password.
    age : int
        Declared age in years.
    description : str | None
        Free-form profile text.
    role : str
        Authorization role carried into access-token claims.
    is_verified : bool
        Whether the email verification code has been confirmed.
    verification_code : str | None
        Pending 6-digit code, cleared once verified.
    verification_code_expires_at : datetime | None
        Expiry of ``verification_code``.
    """

    __tablename__ = "users"

    login: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="user", server_default="user"
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    verification_code: Mapped[str | None] = mapped_column(String(6), nullable=True)
    verification_code_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    sessions: Mapped[list[RefreshSession]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Uniqueness applies to live accounts only, so a soft-deleted login can be reused.
    __table_args__ = (
        Index(
            "uq_users_login_live",
            "login",
            unique=True,
            sqlite_where=text(_LIVE_ROWS),
            postgresql_where=text(_LIVE_ROWS),
        ),
        Index(
            "uq_users_email_live",
            "email",
            unique=True,
            sqlite_where=text(_LIVE_ROWS),
            postgresql_where=text(_LIVE_ROWS),
        ),
    )

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize.
        :type value: str
        :returns: Normalized email (lowercased/trimmed).
        :rtype: str
        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("login")
    def _normalize_login(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Login is required.")
        return value.strip()

    @validates("age")
    def _check_age(self, key: str, value: int) -> int:
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 150:
            raise ValueError("Age must be an integer between 0 and 150.")
        return value
