"""Server-side refresh session model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sessionauth.core.extensions import db

from .base import PKMixin, ReprMixin

if TYPE_CHECKING:
    from .user import User


class RefreshSession(PKMixin, ReprMixin, db.Model):
    """
    One issued refresh token, tracked by the digest of its secret.

    Fields
    ------
    user_id : int
        Owner account. Rows disappear with the account.
    token_hash : str
        SHA-256 hex digest of the token secret; the raw secret is never stored.
    expires_at : datetime
        Instant after which the session can no longer be refreshed.
    revoked : bool
        Set once the session is rotated, logged out or revoked.
    ip_address : str | None
        Client address captured at issuance.
    user_agent : str | None
        Client user agent captured at issuance.
    created_at : datetime
        Issuance timestamp.
    """

    __tablename__ = "refresh_sessions"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="sessions")

    __table_args__ = (
        Index("ix_refresh_sessions_user_id_token_hash", "user_id", "token_hash"),
        Index("ix_refresh_sessions_expires_at", "expires_at"),
    )
