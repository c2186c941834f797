"""SQLAlchemySessionStore against the transactional SQLite fixture."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from sessionauth.infra.db.sqlalchemy_session_store import SQLAlchemySessionStore
from tests.factories.user import UserFactory


@pytest.fixture()
def store() -> SQLAlchemySessionStore:
    return SQLAlchemySessionStore()


@pytest.fixture()
def user(session):
    u = UserFactory()
    session.commit()
    return u


def _exp(days: int = 30) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


def test_create_persists_row(store, user):
    rec = store.create(
        user_id=user.id, token_hash="f" * 64, expires_at=_exp(), ip_address="10.0.0.1"
    )

    got = store.get(rec.id)
    assert got is not None
    assert got.user_id == user.id
    assert got.revoked is False
    assert got.ip_address == "10.0.0.1"
    assert got.expires_at.tzinfo is not None


def test_revoke_flips_once(store, user):
    rec = store.create(user_id=user.id, token_hash="h" * 64, expires_at=_exp())

    assert store.revoke(rec.id) is True
    assert store.revoke(rec.id) is False
    assert store.find_active_by_hash(user.id, "h" * 64) is None


def test_list_active_for_user_newest_first(store, user):
    ids = [store.create(user_id=user.id, token_hash=str(i) * 64, expires_at=_exp()).id for i in range(3)]
    store.revoke(ids[1])

    assert [r.id for r in store.list_active_for_user(user.id)] == [ids[2], ids[0]]


def test_revoke_all_except_and_all(store, user):
    keep = store.create(user_id=user.id, token_hash="a" * 64, expires_at=_exp())
    store.create(user_id=user.id, token_hash="b" * 64, expires_at=_exp())

    assert store.revoke_all_except(user.id, keep.id) == 1
    assert store.revoke_all(user.id) == 1
    assert store.list_active_for_user(user.id) == []


def test_delete_expired(store, user):
    now = datetime.now(UTC)
    old = store.create(user_id=user.id, token_hash="o" * 64, expires_at=now - timedelta(hours=1))
    live = store.create(user_id=user.id, token_hash="l" * 64, expires_at=now + timedelta(hours=1))

    assert store.delete_expired(now=now) == 1
    assert store.get(old.id) is None
    assert store.get(live.id) is not None
