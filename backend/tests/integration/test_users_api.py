"""Integration tests for the ``/users`` endpoints."""

from __future__ import annotations

from tests.helpers.http import assert_problem, bearer


def test_register_validation_problem(client):
    resp = client.post("/users/register", json={"login": "jo", "email": "bad", "password": "1"})
    body = assert_problem(resp, 422, code="validation_error")
    assert {"login", "email", "password", "age"} <= set(body["details"]["errors"])
    assert body["request_id"]


def test_register_conflicts(client, make_user):
    existing = make_user()
    resp = client.post(
        "/users/register",
        json={"login": existing["login"], "email": "fresh@x.com", "password": "secret123", "age": 22},
    )
    assert_problem(resp, 409, detail="User with this login already exists")

    resp = client.post(
        "/users/register",
        json={"login": "fresh", "email": existing["email"], "password": "secret123", "age": 22},
    )
    assert_problem(resp, 409, detail="User with this email already exists")


def test_list_users_requires_auth_and_paginates(client, make_user, tokens):
    _, pair = tokens
    for i in range(3):
        make_user(login=f"page{i}")

    assert_problem(client.get("/users"), 401)

    resp = client.get("/users?loginFilter=PAGE&page=1&limit=2", headers=bearer(pair["accessToken"]))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total"] == 3
    assert body["page"] == 1
    assert body["limit"] == 2
    assert body["totalPages"] == 2
    assert [u["login"] for u in body["data"]] == ["page2", "page1"]


def test_check_availability(client, make_user):
    user = make_user()
    resp = client.get(f"/users/check-availability?login={user['login']}&email=free@x.com")
    assert resp.status_code == 200
    assert resp.get_json() == {"loginExists": True, "emailExists": False}

    assert_problem(client.get("/users/check-availability"), 422)


def test_profile_read_and_partial_update(client, tokens):
    user, pair = tokens
    headers = bearer(pair["accessToken"])

    resp = client.get("/users/profile/my", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["id"] == user["id"]

    resp = client.patch("/users/profile/my", json={"description": "climber"}, headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["description"] == "climber"
    assert body["login"] == user["login"]

    assert_problem(client.patch("/users/profile/my", json={}, headers=headers), 422)


def test_password_change_revokes_sessions(client, tokens):
    user, pair = tokens
    resp = client.patch(
        "/users/profile/my", json={"password": "brand-new-pass"}, headers=bearer(pair["accessToken"])
    )
    assert resp.status_code == 200

    assert_problem(
        client.post("/auth/refresh", json={"refreshToken": pair["refreshToken"]}), 401
    )
    assert_problem(
        client.post("/auth/login", json={"login": user["login"], "password": user["password"]}),
        401,
    )
    assert (
        client.post(
            "/auth/login", json={"login": user["login"], "password": "brand-new-pass"}
        ).status_code
        == 200
    )


def test_delete_profile_invalidates_tokens(client, tokens):
    user, pair = tokens
    headers = bearer(pair["accessToken"])

    assert client.delete("/users/profile/my", headers=headers).status_code == 204

    assert_problem(client.get("/users/profile/my", headers=headers), 401)
    assert_problem(
        client.post("/auth/refresh", json={"refreshToken": pair["refreshToken"]}), 401
    )
    resp = client.get(f"/users/check-availability?login={user['login']}")
    assert resp.get_json()["loginExists"] is False


def test_register_race_on_unique_index_is_409(client, make_user, monkeypatch):
    from sessionauth.repositories.user import UserRepository

    existing = make_user()
    monkeypatch.setattr(UserRepository, "exists_by_login", lambda *a, **k: False)
    monkeypatch.setattr(UserRepository, "exists_by_email", lambda *a, **k: False)

    resp = client.post(
        "/users/register",
        json={"login": "fresh", "email": existing["email"], "password": "secret123", "age": 22},
    )
    assert_problem(resp, 409, detail="User with this email already exists")
