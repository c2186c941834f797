"""In-memory adapters used as test doubles behave like the real ones."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sessionauth.services._shared.ports import (
    InMemoryMailer,
    InMemorySessionStore,
    OutgoingMail,
    StubTokenProvider,
)


def _future(days: int = 1) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


class TestInMemorySessionStore:
    def test_create_assigns_sequential_ids(self):
        store = InMemorySessionStore()
        a = store.create(user_id=1, token_hash="h1", expires_at=_future())
        b = store.create(user_id=1, token_hash="h2", expires_at=_future())
        assert (a.id, b.id) == (1, 2)
        assert a.revoked is False

    def test_revoke_only_succeeds_once(self):
        store = InMemorySessionStore()
        rec = store.create(user_id=1, token_hash="h", expires_at=_future())

        assert store.revoke(rec.id) is True
        assert store.revoke(rec.id) is False
        assert store.find_active_by_hash(1, "h") is None
        assert store.get(rec.id).revoked is True

    def test_find_active_by_hash_is_scoped_to_user(self):
        store = InMemorySessionStore()
        store.create(user_id=1, token_hash="h", expires_at=_future())
        assert store.find_active_by_hash(2, "h") is None

    def test_revoke_all_except_keeps_one(self):
        store = InMemorySessionStore()
        keep = store.create(user_id=1, token_hash="a", expires_at=_future())
        store.create(user_id=1, token_hash="b", expires_at=_future())
        store.create(user_id=1, token_hash="c", expires_at=_future())
        other = store.create(user_id=2, token_hash="d", expires_at=_future())

        assert store.revoke_all_except(1, keep.id) == 2
        assert [r.id for r in store.list_active_for_user(1)] == [keep.id]
        assert store.list_active_for_user(2)[0].id == other.id

    def test_list_is_newest_first(self):
        store = InMemorySessionStore()
        ids = [store.create(user_id=1, token_hash=str(i), expires_at=_future()).id for i in range(3)]
        assert [r.id for r in store.list_active_for_user(1)] == list(reversed(ids))

    def test_delete_expired_removes_past_sessions_only(self):
        store = InMemorySessionStore()
        now = datetime.now(UTC)
        store.create(user_id=1, token_hash="old", expires_at=now - timedelta(seconds=1))
        edge = store.create(user_id=1, token_hash="edge", expires_at=now)
        live = store.create(user_id=1, token_hash="live", expires_at=now + timedelta(days=1))

        assert store.delete_expired(now=now) == 1
        assert store.get(edge.id) is not None
        assert store.get(live.id) is not None

    def test_delete_expired_accepts_naive_now(self):
        store = InMemorySessionStore()
        now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        store.create(user_id=1, token_hash="old", expires_at=now - timedelta(minutes=1))
        live = store.create(user_id=1, token_hash="live", expires_at=now + timedelta(minutes=1))

        assert store.delete_expired(now=now.replace(tzinfo=None)) == 1
        assert [r.id for r in store.list_active_for_user(1)] == [live.id]


def test_stub_token_provider_keeps_claims():
    tokens = StubTokenProvider()
    token = tokens.create_access_token(identity="5", additional_claims={"sid": 3})

    claims = tokens.decode(token)
    assert claims["sub"] == "5"
    assert claims["sid"] == 3


def test_in_memory_mailer_last_to():
    mailer = InMemoryMailer()
    mailer.send(OutgoingMail(to="a@x.com", subject="1", html="", text=""))
    mailer.send(OutgoingMail(to="a@x.com", subject="2", html="", text=""))

    assert mailer.last_to("a@x.com").subject == "2"
    assert mailer.last_to("b@x.com") is None
