"""ORM/store → DTO converters shared by the auth and user services."""

from __future__ import annotations

from sessionauth.models.user import User
from sessionauth.services._shared.ports.session_store import SessionRecord
from sessionauth.services.auth.codec import ensure_utc
from sessionauth.services.auth.dto import SessionView, UserView


def to_user_view(user: User) -> UserView:
    return UserView(
        id=user.id,
        login=user.login,
        email=user.email,
        age=user.age,
        description=user.description,
        is_verified=bool(user.is_verified),
        role=user.role,
        created_at=ensure_utc(user.created_at),
        updated_at=ensure_utc(user.updated_at),
    )


def to_session_view(record: SessionRecord) -> SessionView:
    return SessionView(
        id=record.id,
        ip_address=record.ip_address,
        user_agent=record.user_agent,
        created_at=ensure_utc(record.created_at),
        expires_at=ensure_utc(record.expires_at),
    )
