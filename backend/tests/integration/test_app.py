"""Application-level behaviour: health, request ids, 404s and the CLI."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from tests.factories.session import RefreshSessionFactory
from tests.factories.user import UserFactory
from tests.helpers.http import assert_problem


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"
    assert body["sessionStore"] == "sql"
    assert body["sessionStoreStatus"] == "ok"


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health").headers["X-Request-ID"]
    assert generated and generated != "req-123"


def test_unknown_route_is_problem_json(client):
    body = assert_problem(client.get("/nope"), 404, code="not_found")
    assert body["instance"] == "/nope"


def test_cli_purge_expired(app, session):
    now = datetime.now(UTC)
    RefreshSessionFactory(expires_at=now - timedelta(days=1))
    RefreshSessionFactory(expires_at=now - timedelta(days=2))
    RefreshSessionFactory(expires_at=now + timedelta(days=1))
    session.commit()

    result = app.test_cli_runner().invoke(args=["sessions", "purge-expired"])

    assert result.exit_code == 0, result.output
    assert "Purged 2 expired session(s)." in result.output


def test_cli_revoke_user(app, session):
    user = UserFactory()
    RefreshSessionFactory(user=user)
    RefreshSessionFactory(user=user)
    session.commit()
    user_id = user.id

    result = app.test_cli_runner().invoke(args=["sessions", "revoke-user", str(user_id)])

    assert result.exit_code == 0, result.output
    assert f"Revoked 2 session(s) for user {user_id}." in result.output
