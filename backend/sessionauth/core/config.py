"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints (empty mounts ``/auth`` and
        ``/users`` at the server root).
    SECRET_KEY: str
        Flask secret. Defaults to a development placeholder.
    JWT_SECRET_KEY: str
        Key used by ``flask-jwt-extended`` for signing access tokens.
    ACCESS_TOKEN_TTL_SECONDS: int
        Lifetime of signed access tokens (short, minutes).
    REFRESH_TOKEN_TTL_SECONDS: int
        Lifetime of refresh sessions (long, 30 days by default).
    VERIFICATION_CODE_TTL_SECONDS: int
        Lifetime of the 6-digit email verification code.
    REQUIRE_EMAIL_VERIFICATION: bool
        When ``True`` unverified accounts cannot log in.
    SESSION_STORE_BACKEND: str
        ``"sql"`` (default) or ``"redis"``; the latter requires ``REDIS_URL``.
    REDIS_URL: str | None
        Connection URL for the Redis-backed session store.
    REDIS_CONNECT_TIMEOUT: float
        Seconds to wait for the Redis handshake at startup.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    MAIL_HOST: str | None
        SMTP relay. When unset, verification mails are only logged.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    LOG_FORMAT: str
        ``"json"`` (default) or ``"text"`` for a console-friendly layout.
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = os.getenv("API_BASE_PREFIX", "")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_TOKEN_LOCATION = ["headers"]

    # Token & session lifetimes
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 15 * 60)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 30 * 24 * 60 * 60)
    VERIFICATION_CODE_TTL_SECONDS = env_int("VERIFICATION_CODE_TTL_SECONDS", 15 * 60)
    REQUIRE_EMAIL_VERIFICATION = env_bool("REQUIRE_EMAIL_VERIFICATION", True)

    # Session store
    SESSION_STORE_BACKEND = os.getenv("SESSION_STORE_BACKEND", "sql")
    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_CONNECT_TIMEOUT = float(os.getenv("REDIS_CONNECT_TIMEOUT", "2.0"))

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Mail
    MAIL_HOST = os.getenv("MAIL_HOST")
    MAIL_PORT = env_int("MAIL_PORT", 587)
    MAIL_USER = os.getenv("MAIL_USER")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_FROM = os.getenv("MAIL_FROM", "sessionauth <no-reply@localhost>")
    MAIL_USE_TLS = env_bool("MAIL_USE_TLS", True)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, proxy & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text")
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Always uses the SQL session store and the logging mailer.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    SESSION_STORE_BACKEND = "sql"
    REDIS_URL = None
    MAIL_HOST = None
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


PLACEHOLDER_SECRETS: Final[frozenset[str]] = frozenset({"CHANGE_ME", "CHANGE_ME_JWT"})
SESSION_STORE_BACKENDS: Final[frozenset[str]] = frozenset({"sql", "redis"})


def validate_settings(config: Mapping[str, object]) -> None:
    """Refuse settings that would make tokens unsafe or unusable.

    :param config: Loaded ``app.config``.
    :raises RuntimeError: On inconsistent lifetimes, an unknown session
        backend, or placeholder secrets outside debug/testing.
    """
    access = int(config.get("ACCESS_TOKEN_TTL_SECONDS", 0))  # type: ignore[call-overload]
    refresh = int(config.get("REFRESH_TOKEN_TTL_SECONDS", 0))  # type: ignore[call-overload]
    if not 0 < access < refresh:
        raise RuntimeError(
            "ACCESS_TOKEN_TTL_SECONDS must be positive and shorter than REFRESH_TOKEN_TTL_SECONDS"
        )

    backend = str(config.get("SESSION_STORE_BACKEND", "sql")).lower()
    if backend not in SESSION_STORE_BACKENDS:
        raise RuntimeError(f"Unknown SESSION_STORE_BACKEND {backend!r}")

    if config.get("DEBUG") or config.get("TESTING"):
        return
    weak = sorted(k for k in ("SECRET_KEY", "JWT_SECRET_KEY") if config.get(k) in PLACEHOLDER_SECRETS)
    if weak:
        raise RuntimeError(f"Set real values for {', '.join(weak)} before serving traffic")
