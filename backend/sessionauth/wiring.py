"""Compose adapters and services and publish them on ``app.extensions``."""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, current_app

from sessionauth.infra.db.sqlalchemy_session_store import SQLAlchemySessionStore
from sessionauth.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from sessionauth.infra.mail.smtp_mailer import LoggingMailer, SMTPMailer
from sessionauth.infra.security.hashers import Sha256TokenHasher, WerkzeugPasswordHasher
from sessionauth.services._shared.ports import Mailer, SessionStore
from sessionauth.services.auth.dto import AuthConfig
from sessionauth.services.auth.service import AuthService
from sessionauth.services.users.service import UserService

log = logging.getLogger(__name__)

AUTH_SERVICE_KEY = "auth_service"
USER_SERVICE_KEY = "user_service"


def build_session_store(app: Flask) -> SessionStore:
    """Pick the session store named by ``SESSION_STORE_BACKEND``."""
    backend = str(app.config.get("SESSION_STORE_BACKEND", "sql")).lower()
    if backend == "redis":
        from sessionauth.core.extensions import get_redis
        from sessionauth.infra.redis.redis_session_store import RedisSessionStore

        return RedisSessionStore(get_redis(app))
    if backend != "sql":
        raise RuntimeError(f"Unknown SESSION_STORE_BACKEND {backend!r}")
    return SQLAlchemySessionStore()


def build_mailer(app: Flask) -> Mailer:
    host = app.config.get("MAIL_HOST")
    if not host:
        return LoggingMailer()
    return SMTPMailer(
        host=host,
        port=int(app.config.get("MAIL_PORT", 587)),
        sender=app.config.get("MAIL_FROM", "no-reply@localhost"),
        username=app.config.get("MAIL_USER"),
        password=app.config.get("MAIL_PASSWORD"),
        use_tls=bool(app.config.get("MAIL_USE_TLS", True)),
    )


def auth_config(app: Flask) -> AuthConfig:
    return AuthConfig(
        access_expires=timedelta(seconds=int(app.config["ACCESS_TOKEN_TTL_SECONDS"])),
        refresh_expires=timedelta(seconds=int(app.config["REFRESH_TOKEN_TTL_SECONDS"])),
        verification_code_expires=timedelta(
            seconds=int(app.config["VERIFICATION_CODE_TTL_SECONDS"])
        ),
        require_verified_email=bool(app.config.get("REQUIRE_EMAIL_VERIFICATION", True)),
    )


def init_app(
    app: Flask,
    *,
    session_store: SessionStore | None = None,
    mailer: Mailer | None = None,
) -> None:
    """
    Build the service graph once per application.

    :param app: Configured application (extensions already initialized).
    :param session_store: Override for the configured store (tests).
    :param mailer: Override for the configured mailer (tests).
    """
    password_hasher = WerkzeugPasswordHasher()
    auth = AuthService(
        token_provider=JWTTokenProvider(),
        session_store=session_store or build_session_store(app),
        password_hasher=password_hasher,
        token_hasher=Sha256TokenHasher(),
        mailer=mailer or build_mailer(app),
        cfg=auth_config(app),
    )
    app.extensions[AUTH_SERVICE_KEY] = auth
    app.extensions[USER_SERVICE_KEY] = UserService(password_hasher=password_hasher, auth=auth)
    log.debug(
        "wiring.ready store=%s mailer=%s",
        type(auth.sessions).__name__,
        type(auth.mailer).__name__,
    )


def auth_service() -> AuthService:
    return current_app.extensions[AUTH_SERVICE_KEY]


def user_service() -> UserService:
    return current_app.extensions[USER_SERVICE_KEY]
