"""Integration tests for the ``/auth`` endpoints."""

from __future__ import annotations

import re

from tests.helpers.http import assert_problem, bearer


def _code(outbox_mailer, email: str) -> str:
    message = outbox_mailer.last_to(email)
    assert message is not None
    return re.search(r"\b(\d{6})\b", message.text).group(1)


def _walk_keys(obj):
    if isinstance(obj, dict):
        for key, value in obj.items():
            yield key
            yield from _walk_keys(value)
    elif isinstance(obj, list):
        for item in obj:
            yield from _walk_keys(item)


def test_register_verify_login_john(client, outbox_mailer):
    """Register john, confirm the mailed code, then log in."""
    payload = {"login": "john", "email": "john@x.com", "password": "secret123", "age": 30}

    resp = client.post("/users/register", json=payload)
    assert resp.status_code == 201
    created = resp.get_json()
    assert created["login"] == "john"
    assert created["isVerified"] is False

    resp = client.post("/auth/login", json={"login": "john", "password": "secret123"})
    assert_problem(resp, 401, code="email_not_verified")

    code = _code(outbox_mailer, "john@x.com")
    resp = client.post("/auth/verify-email", json={"email": "john@x.com", "code": code})
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Email verified successfully"}

    resp = client.post("/auth/login", json={"login": "john", "password": "secret123"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert set(body) == {"accessToken", "refreshToken", "user"}
    assert body["user"]["login"] == "john"
    assert body["user"]["age"] == 30
    assert re.fullmatch(rf"{created['id']}\.[0-9a-f]{{64}}", body["refreshToken"])

    keys = set(_walk_keys(body))
    assert not keys & {"password", "passwordHash", "password_hash", "verificationCode"}
    assert "secret123" not in resp.get_data(as_text=True)


def test_login_wrong_password_and_unknown_user_look_alike(client, make_user):
    user = make_user()
    wrong = client.post("/auth/login", json={"login": user["login"], "password": "nope-nope"})
    unknown = client.post("/auth/login", json={"login": "ghost", "password": "nope-nope"})

    a = assert_problem(wrong, 401, code="invalid_credentials")
    b = assert_problem(unknown, 401, code="invalid_credentials")
    assert a["detail"] == b["detail"] == "Invalid credentials"


def test_refresh_rotates(client, tokens):
    _, first = tokens

    resp = client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]})
    assert resp.status_code == 200
    second = resp.get_json()
    assert second["refreshToken"] != first["refreshToken"]

    replay = client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]})
    assert_problem(replay, 401, code="invalid_refresh_token")

    again = client.post("/auth/refresh", json={"refreshToken": second["refreshToken"]})
    assert again.status_code == 200


def test_refresh_malformed_and_missing(client):
    assert_problem(
        client.post("/auth/refresh", json={"refreshToken": "not-a-token"}),
        401,
        code="invalid_refresh_token",
    )
    body = assert_problem(client.post("/auth/refresh", json={}), 422, code="validation_error")
    assert "refreshToken" in body["details"]["errors"]


def test_logout_then_refresh_fails(client, tokens):
    _, pair = tokens

    resp = client.post("/auth/logout", json={"refreshToken": pair["refreshToken"]})
    assert resp.status_code == 204
    assert client.post("/auth/logout", json={"refreshToken": pair["refreshToken"]}).status_code == 204

    assert_problem(
        client.post("/auth/refresh", json={"refreshToken": pair["refreshToken"]}), 401
    )


def test_sessions_require_auth(client):
    assert_problem(client.get("/auth/sessions"), 401)
    assert_problem(client.get("/auth/sessions", headers=bearer("garbage")), 401)


def test_list_and_revoke_sessions(client, make_user, login_pair):
    user = make_user()
    first = login_pair(user["login"], user["password"])
    second = login_pair(user["login"], user["password"])
    third = login_pair(user["login"], user["password"])

    resp = client.get("/auth/sessions", headers=bearer(third["accessToken"]))
    assert resp.status_code == 200
    sessions = resp.get_json()
    assert len(sessions) == 3
    assert set(sessions[0]) == {"id", "ipAddress", "userAgent", "createdAt", "expiresAt"}
    ids = [s["id"] for s in sessions]
    assert ids == sorted(ids, reverse=True)

    # Revoke the oldest one explicitly.
    resp = client.delete(f"/auth/sessions/{ids[-1]}", headers=bearer(third["accessToken"]))
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Session revoked"}
    assert_problem(
        client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]}), 401
    )

    # Sign out everywhere else; the caller's own session survives.
    resp = client.delete("/auth/sessions", headers=bearer(third["accessToken"]))
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Revoked 1 other session(s)"}
    remaining = client.get("/auth/sessions", headers=bearer(third["accessToken"])).get_json()
    assert [s["id"] for s in remaining] == [ids[0]]
    assert_problem(
        client.post("/auth/refresh", json={"refreshToken": second["refreshToken"]}), 401
    )
    assert client.post("/auth/refresh", json={"refreshToken": third["refreshToken"]}).status_code == 200


def test_revoke_sessions_with_explicit_current_token_id(client, make_user, login_pair):
    user = make_user()
    keep = login_pair(user["login"], user["password"])
    caller = login_pair(user["login"], user["password"])
    keep_id = min(
        s["id"] for s in client.get("/auth/sessions", headers=bearer(caller["accessToken"])).get_json()
    )

    resp = client.delete(
        "/auth/sessions", json={"currentTokenId": keep_id}, headers=bearer(caller["accessToken"])
    )
    assert resp.status_code == 200
    assert client.post("/auth/refresh", json={"refreshToken": keep["refreshToken"]}).status_code == 200


def test_cannot_revoke_foreign_session(client, make_user, login_pair):
    alice = make_user()
    bob = make_user()
    alice_pair = login_pair(alice["login"], alice["password"])
    bob_pair = login_pair(bob["login"], bob["password"])
    [bob_session] = client.get("/auth/sessions", headers=bearer(bob_pair["accessToken"])).get_json()

    resp = client.delete(
        f"/auth/sessions/{bob_session['id']}", headers=bearer(alice_pair["accessToken"])
    )
    assert_problem(resp, 403, detail="Cannot revoke this session")


def test_session_records_client_metadata(client, make_user):
    user = make_user()
    resp = client.post(
        "/auth/login",
        json={"login": user["login"], "password": user["password"]},
        headers={"User-Agent": "integration-agent/1.0"},
        environ_base={"REMOTE_ADDR": "198.51.100.7"},
    )
    access = resp.get_json()["accessToken"]
    [session] = client.get("/auth/sessions", headers=bearer(access)).get_json()

    assert session["userAgent"] == "integration-agent/1.0"
    assert session["ipAddress"] == "198.51.100.7"


def test_verify_email_error_paths(client, make_user, outbox_mailer):
    verified = make_user()
    assert_problem(
        client.post("/auth/verify-email", json={"email": "ghost@x.com", "code": "123456"}),
        404,
        detail="User not found",
    )
    assert_problem(
        client.post("/auth/verify-email", json={"email": verified["email"], "code": "123456"}),
        400,
        code="already_verified",
    )

    client.post(
        "/users/register",
        json={"login": "newbie", "email": "newbie@x.com", "password": "secret123", "age": 20},
    )
    code = _code(outbox_mailer, "newbie@x.com")
    wrong = "000000" if code != "000000" else "111111"
    assert_problem(
        client.post("/auth/verify-email", json={"email": "newbie@x.com", "code": wrong}),
        400,
        detail="Invalid verification code",
    )
    assert_problem(
        client.post("/auth/verify-email", json={"email": "newbie@x.com", "code": "12ab"}), 422
    )


def test_resend_verification(client, outbox_mailer):
    client.post(
        "/users/register",
        json={"login": "again", "email": "again@x.com", "password": "secret123", "age": 20},
    )
    outbox_mailer.outbox.clear()

    resp = client.post("/auth/resend-verification", json={"email": "again@x.com"})
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Verification email sent"}
    code = _code(outbox_mailer, "again@x.com")

    resp = client.post("/auth/verify-email", json={"email": "again@x.com", "code": code})
    assert resp.status_code == 200
    assert_problem(
        client.post("/auth/resend-verification", json={"email": "again@x.com"}),
        400,
        code="already_verified",
    )
