# sessionauth/infra/redis/redis_session_store.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

import redis  # type: ignore[import-untyped]

from sessionauth.services._shared.ports import SessionRecord, SessionStore, newest_first
from sessionauth.services.auth.codec import ensure_utc

# Revoked/expired hashes linger this long past expiry for ``get`` history reads.
RETENTION = timedelta(days=7)


def _s(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisSessionStore(SessionStore):
    """
    Redis-backed session store.

    Layout
    ------
    - ``rs:seq``: ``INCR`` counter handing out session ids.
    - ``rs:{id}``: hash with the session fields.
    - ``rs:u:{user_id}``: sorted set of the user's session ids (score = creation time).
    - ``rs:h:{user_id}:{token_hash}``: id of the *active* session holding that digest.
    - ``rs:exp``: sorted set of every session id (score = expiry) for sweeps.

    Revocation uses WATCH/MULTI/EXEC (optimistic locking) so exactly one
    concurrent caller flips a session from active to revoked.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(session_id: int) -> str:
        return f"rs:{session_id}"

    @staticmethod
    def _ku(user_id: int) -> str:
        return f"rs:u:{user_id}"

    @staticmethod
    def _kh(user_id: int, token_hash: str) -> str:
        return f"rs:h:{user_id}:{token_hash}"

    _K_SEQ = "rs:seq"
    _K_EXP = "rs:exp"

    @staticmethod
    def _ts(dt: datetime) -> float:
        return ensure_utc(dt).timestamp()

    def _load(self, session_id: int) -> SessionRecord | None:
        h = self.r.hgetall(self._k(session_id))
        if not h:
            return None
        return SessionRecord(
            id=session_id,
            user_id=int(_s(h.get(b"user_id"), "0")),
            token_hash=_s(h.get(b"token_hash")),
            expires_at=datetime.fromisoformat(_s(h.get(b"expires_at"))),
            revoked=_s(h.get(b"revoked"), "0") == "1",
            ip_address=_s(h.get(b"ip_address")) or None,
            user_agent=_s(h.get(b"user_agent")) or None,
            created_at=datetime.fromisoformat(_s(h.get(b"created_at"))),
        )

    def _member_ids(self, user_id: int) -> list[int]:
        return [int(_s(m)) for m in self.r.zrange(self._ku(user_id), 0, -1)]

    # -------------------- API ------------------------

    def create(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionRecord:
        session_id = int(self.r.incr(self._K_SEQ))
        created_at = datetime.now(UTC)
        expires_at = ensure_utc(expires_at)
        key = self._k(session_id)

        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            key,
            mapping={
                "user_id": str(user_id),
                "token_hash": token_hash,
                "expires_at": expires_at.isoformat(),
                "revoked": "0",
                "ip_address": ip_address or "",
                "user_agent": user_agent or "",
                "created_at": created_at.isoformat(),
            },
        )
        pipe.expireat(key, expires_at + RETENTION)
        pipe.set(self._kh(user_id, token_hash), str(session_id))
        pipe.expireat(self._kh(user_id, token_hash), expires_at + RETENTION)
        pipe.zadd(self._ku(user_id), {str(session_id): self._ts(created_at)})
        pipe.zadd(self._K_EXP, {str(session_id): self._ts(expires_at)})
        pipe.execute()

        return SessionRecord(
            id=session_id,
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            revoked=False,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=created_at,
        )

    def get(self, session_id: int) -> SessionRecord | None:
        return self._load(session_id)

    def find_active_by_hash(self, user_id: int, token_hash: str) -> SessionRecord | None:
        raw_id = self.r.get(self._kh(user_id, token_hash))
        if raw_id is None:
            return None
        record = self._load(int(_s(raw_id)))
        if record is None or record.revoked or record.user_id != user_id:
            return None
        return record

    def list_active_for_user(self, user_id: int) -> list[SessionRecord]:
        active: list[SessionRecord] = []
        stale: list[str] = []
        for session_id in self._member_ids(user_id):
            record = self._load(session_id)
            if record is None:
                # Hash aged out of retention -> drop it from the index
                stale.append(str(session_id))
            elif not record.revoked:
                active.append(record)
        if stale:
            self.r.zrem(self._ku(user_id), *stale)
        return newest_first(active)

    def revoke(self, session_id: int) -> bool:
        """
        Atomically flip ``revoked`` from ``0`` to ``1``.

        Uses WATCH on the session hash: if another client revokes it between
        our read and EXEC, the transaction aborts and we re-read, then observe
        the session already revoked and return ``False``.
        """
        key = self._k(session_id)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    h = p.hgetall(key)
                    if not h or _s(h.get(b"revoked"), "0") == "1":
                        p.unwatch()
                        return False
                    user_id = int(_s(h.get(b"user_id"), "0"))
                    token_hash = _s(h.get(b"token_hash"))

                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.delete(self._kh(user_id, token_hash))
                    p.execute()
                return True
            except redis.WatchError:
                continue

    def _revoke_many(self, user_id: int, keep_id: int | None) -> int:
        return sum(
            1
            for session_id in self._member_ids(user_id)
            if session_id != keep_id and self.revoke(session_id)
        )

    def revoke_all(self, user_id: int) -> int:
        return self._revoke_many(user_id, None)

    def revoke_all_except(self, user_id: int, keep_id: int) -> int:
        return self._revoke_many(user_id, keep_id)

    def delete_expired(self, *, now: datetime | None = None) -> int:
        cutoff = self._ts(now or datetime.now(UTC))
        # "(" makes the bound exclusive: a session expiring exactly now stays.
        expired = [int(_s(m)) for m in self.r.zrangebyscore(self._K_EXP, "-inf", f"({cutoff}")]
        removed = 0
        for session_id in expired:
            h = self.r.hgetall(self._k(session_id))
            pipe = self.r.pipeline(transaction=True)
            if h:
                user_id = int(_s(h.get(b"user_id"), "0"))
                pipe.delete(self._kh(user_id, _s(h.get(b"token_hash"))))
                pipe.zrem(self._ku(user_id), str(session_id))
            pipe.delete(self._k(session_id))
            pipe.zrem(self._K_EXP, str(session_id))
            out = cast(list[int], pipe.execute())
            removed += 1 if out[-2] else 0
        return removed
