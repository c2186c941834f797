"""Fixtures shared by the HTTP integration tests."""

from __future__ import annotations

import pytest

from tests.factories.user import DEFAULT_PASSWORD, UserFactory


@pytest.fixture()
def make_user(session):
    """Persist a verified user and return plain credentials.

    Requests close the scoped session on teardown, so tests keep ids and
    credentials instead of ORM instances.
    """

    def _make(**kwargs) -> dict:
        password = kwargs.pop("password", DEFAULT_PASSWORD)
        user = UserFactory(password=password, **kwargs)
        session.commit()
        return {"id": user.id, "login": user.login, "email": user.email, "password": password}

    return _make


@pytest.fixture()
def tokens(make_user, login_pair):
    """A verified user logged in once: ``(user, login_response_body)``."""
    user = make_user()
    return user, login_pair(user["login"], user["password"])
