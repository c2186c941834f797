from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol

from sessionauth.services.auth.codec import ensure_utc


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """
    Read-model for a refresh session, independent of the backing store.

    :ivar id: Store-assigned identifier.
    :ivar user_id: Owner user id.
    :ivar token_hash: Digest of the refresh secret.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar revoked: Whether the session was rotated, logged out or revoked.
    :ivar ip_address: Client address at issuance.
    :ivar user_agent: Client user agent at issuance.
    :ivar created_at: Issuance instant (UTC).
    """

    id: int
    user_id: int
    token_hash: str
    expires_at: datetime
    revoked: bool
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class SessionStore(Protocol):
    """
    Persistent store of refresh sessions.

    ``revoke`` MUST be an atomic conditional write: when several callers race
    on the same active session, exactly one of them observes ``True``.
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
        """Persist a new, non-revoked session and return it with its id."""

    def get(self, session_id: int) -> SessionRecord | None:
        """Fetch a session by id, revoked ones included."""

    def find_active_by_hash(self, user_id: int, token_hash: str) -> SessionRecord | None:
        """Return the non-revoked session of ``user_id`` holding ``token_hash``."""

    def list_active_for_user(self, user_id: int) -> list[SessionRecord]:
        """Non-revoked sessions of ``user_id``, newest first."""

    def revoke(self, session_id: int) -> bool:
        """Mark one session revoked. :returns: True only if it was active."""

    def revoke_all(self, user_id: int) -> int:
        """Revoke every active session of ``user_id``. :returns: sessions affected."""

    def revoke_all_except(self, user_id: int, keep_id: int) -> int:
        """Revoke every active session of ``user_id`` but ``keep_id``."""

    def delete_expired(self, *, now: datetime | None = None) -> int:
        """Hard-delete sessions that expired before ``now``. :returns: rows removed."""


def newest_first(records: list[SessionRecord]) -> list[SessionRecord]:
    """Order records by ``created_at`` then ``id``, both descending."""
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)


class InMemorySessionStore(SessionStore):
    """
    In-memory session store.

    .. note::
       Uses a threading lock so the conditional revoke is atomic in tests.
    """

    def __init__(self) -> None:
        self._by_id: dict[int, SessionRecord] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def create(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionRecord:
        with self._lock:
            self._seq += 1
            record = SessionRecord(
                id=self._seq,
                user_id=user_id,
                token_hash=token_hash,
                expires_at=expires_at,
                revoked=False,
                ip_address=ip_address,
                user_agent=user_agent,
                created_at=datetime.now(UTC),
            )
            self._by_id[record.id] = record
            return record

    def get(self, session_id: int) -> SessionRecord | None:
        with self._lock:
            return self._by_id.get(session_id)

    def find_active_by_hash(self, user_id: int, token_hash: str) -> SessionRecord | None:
        with self._lock:
            for record in self._by_id.values():
                if (
                    record.user_id == user_id
                    and record.token_hash == token_hash
                    and not record.revoked
                ):
                    return record
        return None

    def list_active_for_user(self, user_id: int) -> list[SessionRecord]:
        with self._lock:
            active = [r for r in self._by_id.values() if r.user_id == user_id and not r.revoked]
        return newest_first(active)

    def revoke(self, session_id: int) -> bool:
        with self._lock:
            record = self._by_id.get(session_id)
            if record is None or record.revoked:
                return False
            self._by_id[session_id] = replace(record, revoked=True)
            return True

    def _revoke_where(self, user_id: int, keep_id: int | None) -> int:
        with self._lock:
            ids = [
                r.id
                for r in self._by_id.values()
                if r.user_id == user_id and not r.revoked and r.id != keep_id
            ]
            for sid in ids:
                self._by_id[sid] = replace(self._by_id[sid], revoked=True)
            return len(ids)

    def revoke_all(self, user_id: int) -> int:
        return self._revoke_where(user_id, None)

    def revoke_all_except(self, user_id: int, keep_id: int) -> int:
        return self._revoke_where(user_id, keep_id)

    def delete_expired(self, *, now: datetime | None = None) -> int:
        cutoff = ensure_utc(now or datetime.now(UTC))
        with self._lock:
            stale = [sid for sid, r in self._by_id.items() if ensure_utc(r.expires_at) < cutoff]
            for sid in stale:
                del self._by_id[sid]
            return len(stale)
