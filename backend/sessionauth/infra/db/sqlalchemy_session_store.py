# sessionauth/infra/db/sqlalchemy_session_store.py
from __future__ import annotations

from datetime import UTC, datetime

from sessionauth.models.session import RefreshSession
from sessionauth.services._shared.base import BaseService
from sessionauth.services._shared.ports import SessionRecord, SessionStore
from sessionauth.services.auth.codec import ensure_utc


def _record(row: RefreshSession) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        expires_at=ensure_utc(row.expires_at),
        revoked=bool(row.revoked),
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        created_at=ensure_utc(row.created_at),
    )


class SQLAlchemySessionStore(BaseService, SessionStore):
    """
    Relational session store (default backend).

    Each operation runs in its own unit of work and commits before returning,
    so a session exists in the database before its token is handed out.
    Revocation is a single conditional ``UPDATE ... WHERE revoked = false``:
    the database serialises concurrent rotations of the same token.
    """

    def create(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionRecord:
        with self.rw_uow() as uow:
            row = uow.sessions.add(
                RefreshSession(
                    user_id=user_id,
                    token_hash=token_hash,
                    expires_at=expires_at,
                    revoked=False,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    created_at=datetime.now(UTC),
                )
            )
            return _record(row)

    def get(self, session_id: int) -> SessionRecord | None:
        with self.ro_uow() as uow:
            row = uow.sessions.get(session_id)
            return _record(row) if row is not None else None

    def find_active_by_hash(self, user_id: int, token_hash: str) -> SessionRecord | None:
        with self.ro_uow() as uow:
            row = uow.sessions.find_active_by_hash(user_id, token_hash)
            return _record(row) if row is not None else None

    def list_active_for_user(self, user_id: int) -> list[SessionRecord]:
        with self.ro_uow() as uow:
            return [_record(r) for r in uow.sessions.list_active_for_user(user_id)]

    def revoke(self, session_id: int) -> bool:
        with self.rw_uow() as uow:
            return uow.sessions.revoke_if_active(session_id)

    def revoke_all(self, user_id: int) -> int:
        with self.rw_uow() as uow:
            return uow.sessions.revoke_all(user_id)

    def revoke_all_except(self, user_id: int, keep_id: int) -> int:
        with self.rw_uow() as uow:
            return uow.sessions.revoke_all(user_id, keep_id=keep_id)

    def delete_expired(self, *, now: datetime | None = None) -> int:
        with self.rw_uow() as uow:
            return uow.sessions.delete_expired(ensure_utc(now or datetime.now(UTC)))
