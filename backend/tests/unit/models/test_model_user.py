"""Tests for the User and RefreshSession models."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from sessionauth.models import RefreshSession, User
from tests.factories.session import RefreshSessionFactory
from tests.factories.user import UserFactory


class TestUser:
    def test_email_normalized_and_login_trimmed(self, session):
        u = User(login="  tester ", email=" Test@Example.com ", password_hash="x", age=20)
        session.add(u)
        session.commit()
        assert u.email == "test@example.com"
        assert u.login == "tester"
        assert u.role == "user"
        assert u.is_verified is False

    def test_live_login_unique(self, session):
        UserFactory(login="bob")
        session.commit()

        session.add(User(login="bob", email="bob2@example.com", password_hash="x", age=20))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_live_email_unique(self, session):
        UserFactory(email="same@example.com")
        session.commit()

        session.add(User(login="other", email="SAME@example.com", password_hash="x", age=20))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    @pytest.mark.parametrize("age", [-1, 151, True, "30"])
    def test_age_bounds(self, age):
        with pytest.raises(ValueError):
            User(login="x", email="x@example.com", password_hash="x", age=age)

    def test_basic_validations(self):
        with pytest.raises(ValueError):
            User(login="u", email="", password_hash="x", age=1)
        with pytest.raises(ValueError):
            User(login="u", email="no-at-sign", password_hash="x", age=1)
        with pytest.raises(ValueError):
            User(login="   ", email="u@example.com", password_hash="x", age=1)

    def test_repr(self, session):
        u = UserFactory()
        assert repr(u) == f"<User id={u.id}>"


class TestRefreshSession:
    def test_defaults(self, session):
        rs = RefreshSessionFactory()
        session.commit()
        assert rs.revoked is False
        assert rs.user.sessions == [rs]

    def test_hard_delete_of_user_cascades(self, session):
        rs = RefreshSessionFactory()
        session.commit()
        rs_id = rs.id

        session.delete(rs.user)
        session.commit()
        assert session.get(RefreshSession, rs_id) is None
