"""HTTP blueprints mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register related blueprints beneath a common prefix.

    Parameters
    ----------
    app:
        Application instance receiving the blueprints.
    base_prefix:
        Prefix applied to all entries. Empty mounts them at the server root.
    entries:
        Iterable of ``(blueprint, relative_prefix)`` pairs where
        ``relative_prefix`` is appended to ``base_prefix``.
    """

    for bp, rel_prefix in entries:
        full_prefix = "/".join(
            segment for segment in [base_prefix.strip("/"), rel_prefix.strip("/")] if segment
        )
        app.register_blueprint(bp, url_prefix="/" + full_prefix if full_prefix else None)


def init_app(app: Flask) -> None:
    """Mount the ``/auth``, ``/users`` and health blueprints."""

    from sessionauth.api.auth import bp as auth_bp
    from sessionauth.api.health import bp as health_bp
    from sessionauth.api.users import bp as users_bp

    registry: list[tuple[Blueprint, str]] = [
        (health_bp, ""),
        (auth_bp, "/auth"),
        (users_bp, "/users"),
    ]
    register_blueprint_group(
        app, base_prefix=app.config.get("API_BASE_PREFIX", ""), entries=registry
    )


__all__ = ["init_app", "register_blueprint_group"]
