"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from flask import Flask

from sessionauth.core.config import BaseConfig, get_config, validate_settings
from sessionauth.core.logger import configure_logging, init_app as init_logging
from sessionauth.services._shared.ports import Mailer, SessionStore


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    session_store: SessionStore | None = None,
    mailer: Mailer | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object, class or import path (``APP_ENV`` when ``None``).
    :param session_store: Replace the configured session store.
    :param mailer: Replace the configured mailer.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    validate_settings(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"), app.config.get("LOG_FORMAT", "json"))

    from sessionauth.core import proxy

    proxy.init_app(app)

    from sessionauth.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from sessionauth.core import cors

    cors.init_app(app)

    from sessionauth import wiring

    wiring.init_app(app, session_store=session_store, mailer=mailer)

    from sessionauth.api import init_app as init_api

    init_api(app)

    from sessionauth.core import errors

    errors.init_app(app)

    from sessionauth import cli as app_cli

    app_cli.init_app(app)

    return app
