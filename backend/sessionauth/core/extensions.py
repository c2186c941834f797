"""Extension singletons shared across the app and the session-store client."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData, event
from sqlalchemy.engine import Engine

REDIS_EXTENSION_KEY = "session_redis"

# Deterministic constraint names keep migrations diffable across backends.
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_name)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Have SQLite honour ``ON DELETE CASCADE`` on refresh sessions."""
    if engine.url.get_backend_name() != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _connect_session_redis(app: Flask) -> redis.Redis:
    url = app.config.get("REDIS_URL")
    if not url:
        raise RuntimeError("SESSION_STORE_BACKEND=redis requires REDIS_URL")
    client = redis.Redis.from_url(
        url, socket_connect_timeout=app.config.get("REDIS_CONNECT_TIMEOUT", 2.0)
    )
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {url!r}") from exc
    return client


def init_app(app: Flask) -> None:
    """Bind the database, migrations and JWT manager to ``app``.

    The Redis client is only created when refresh sessions live in Redis;
    the SQL backend never opens a Redis connection.

    Parameters
    ----------
    app: flask.Flask
        Application to bind. Importing :mod:`sessionauth.models` here makes
        both tables visible to Alembic autogenerate.
    """
    db.init_app(app)
    with app.app_context():
        _enable_sqlite_foreign_keys(db.engine)

    from sessionauth import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    if str(app.config.get("SESSION_STORE_BACKEND", "sql")).lower() == "redis":
        app.extensions[REDIS_EXTENSION_KEY] = _connect_session_redis(app)
    else:
        app.extensions.pop(REDIS_EXTENSION_KEY, None)


def get_redis(app: Flask | None = None) -> redis.Redis:
    """Return the Redis client backing the session store.

    :raises RuntimeError: The app was not configured for the Redis backend.
    """
    target = app or current_app
    client = target.extensions.get(REDIS_EXTENSION_KEY)
    if client is None:
        raise RuntimeError("Redis session backend is not configured for this app.")
    return client


def ping_redis(app: Flask | None = None) -> bool:
    """``True`` when the session Redis answers ``PING``."""
    try:
        return bool(get_redis(app).ping())
    except RedisError:
        return False
