"""Refresh session repository (conditional updates, sweeps)."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update
from sqlalchemy.engine import CursorResult

from sessionauth.models.session import RefreshSession
from sessionauth.repositories.base import BaseRepository


class RefreshSessionRepository(BaseRepository[RefreshSession]):
    """Persistence-only repository for :class:`RefreshSession`.

    Bulk writes are single ``UPDATE``/``DELETE`` statements whose affected-row
    count is the result; they bypass the identity map, so callers should not
    keep stale instances around across them.
    """

    model = RefreshSession

    def find_active_by_hash(self, user_id: int, token_hash: str) -> RefreshSession | None:
        """Return the non-revoked session of ``user_id`` whose digest matches."""
        return self.find_one(
            RefreshSession.user_id == user_id,
            RefreshSession.token_hash == token_hash,
            RefreshSession.revoked.is_(False),
        )

    def list_active_for_user(self, user_id: int) -> list[RefreshSession]:
        """Non-revoked sessions of ``user_id``, newest first."""
        stmt = (
            select(RefreshSession)
            .where(RefreshSession.user_id == user_id, RefreshSession.revoked.is_(False))
            .order_by(RefreshSession.created_at.desc(), RefreshSession.id.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def _rowcount(self, stmt) -> int:
        result = cast(CursorResult, self.session.execute(stmt))
        return int(result.rowcount or 0)

    def revoke_if_active(self, session_id: int) -> bool:
        """Flip ``revoked`` only when it is still ``False``.

        :returns: ``True`` for exactly one concurrent caller.
        :rtype: bool
        """
        stmt = (
            update(RefreshSession)
            .where(RefreshSession.id == session_id, RefreshSession.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt) == 1

    def revoke_all(self, user_id: int, *, keep_id: int | None = None) -> int:
        """Revoke every active session of ``user_id`` except ``keep_id``."""
        stmt = update(RefreshSession).where(
            RefreshSession.user_id == user_id, RefreshSession.revoked.is_(False)
        )
        if keep_id is not None:
            stmt = stmt.where(RefreshSession.id != keep_id)
        return self._rowcount(
            stmt.values(revoked=True).execution_options(synchronize_session=False)
        )

    def delete_expired(self, now: datetime) -> int:
        """Hard-delete sessions whose expiry lies strictly before ``now``."""
        stmt = (
            delete(RefreshSession)
            .where(RefreshSession.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)
