"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Configure CORS for the auth and user endpoints.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS``, ``CORS_MAX_AGE`` and
        ``API_BASE_PREFIX`` settings are consulted. When ``CORS_ORIGINS`` is
        blank or ``"*"`` the policy allows any origin but disables credential
        support.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]
    prefix = app.config.get("API_BASE_PREFIX", "").rstrip("/")

    policy = {
        "origins": "*" if wildcard else origins,
        "expose_headers": ["X-Request-ID"],
    }
    CORS(
        app,
        resources={rf"{prefix}/auth/*": policy, rf"{prefix}/users*": policy},
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
