"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Service commits
release the per-test SAVEPOINT only; the outer transaction is rolled back
at teardown.
"""

from __future__ import annotations

import os

import fakeredis
import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from sessionauth.core.config import TestingConfig
from sessionauth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from sessionauth.factory import create_app  # application factory under test
from sessionauth.infra.security.hashers import Sha256TokenHasher, WerkzeugPasswordHasher
from sessionauth.services._shared.ports import (
    InMemoryMailer,
    InMemorySessionStore,
    StubTokenProvider,
)
from sessionauth.services.auth.dto import AuthConfig
from sessionauth.services.auth.service import AuthService
from sessionauth.services.users.service import UserService


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - In-memory SQLite and the SQL session store.
    - A 32+ byte JWT key so PyJWT does not warn about short HMAC secrets.
    - Mail goes to an :class:`InMemoryMailer` injected by the ``app`` fixture.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-entropy-0123456789"
    SECRET_KEY = "test-secret"
    LOG_LEVEL = "WARNING"
    USE_PROXYFIX = False


@pytest.fixture(scope="session")
def outbox_mailer() -> InMemoryMailer:
    """Mailer shared by the application under test."""
    return InMemoryMailer()


@pytest.fixture(scope="session")
def app(outbox_mailer):
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and the
        in-memory mailer wired into the services.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, mailer=outbox_mailer)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session and keep an app context."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; rolled back after
        each test.

    Notes
    -----
    A top-level transaction is opened, a SAVEPOINT is started per test and
    re-installed whenever SQLAlchemy ends one. ``db.session`` is swapped for
    the scoped session so units of work and factories share it.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Service doubles ------------------------------------------------------------
@pytest.fixture()
def mailer() -> InMemoryMailer:
    return InMemoryMailer()


@pytest.fixture()
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture()
def auth_cfg() -> AuthConfig:
    return AuthConfig()


@pytest.fixture()
def auth_service(session_store, mailer, auth_cfg) -> AuthService:
    """AuthService wired to in-memory doubles and the real hashers."""
    return AuthService(
        token_provider=StubTokenProvider(),
        session_store=session_store,
        password_hasher=WerkzeugPasswordHasher(method="pbkdf2:sha256:1000"),
        token_hasher=Sha256TokenHasher(),
        mailer=mailer,
        cfg=auth_cfg,
    )


@pytest.fixture()
def user_service(auth_service) -> UserService:
    return UserService(password_hasher=auth_service.passwords, auth=auth_service)


@pytest.fixture()
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


# -- HTTP helpers -----------------------------------------------------------------
@pytest.fixture()
def client(app, session, outbox_mailer):
    """Flask test client; the shared outbox is emptied for every test."""
    outbox_mailer.outbox.clear()
    return app.test_client()


@pytest.fixture()
def login_pair(client):
    """Return a callable logging in through the API and returning the JSON body."""

    def _login(login: str, password: str) -> dict:
        resp = client.post("/auth/login", json={"login": login, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()

    return _login
