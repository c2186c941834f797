"""WSGI proxy middleware and client metadata helpers."""

from __future__ import annotations

from flask import Flask, request
from werkzeug.middleware.proxy_fix import ProxyFix

from sessionauth.services.auth.dto import ClientContext

# Column limits of ``refresh_sessions.ip_address`` / ``user_agent``.
MAX_IP_LENGTH = 45
MAX_USER_AGENT_LENGTH = 500


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    Parameters
    ----------
    app: flask.Flask
        Application whose WSGI pipeline should respect upstream proxy headers.

    Notes
    -----
    Controlled by the ``USE_PROXYFIX`` configuration flag (defaults to
    ``True``). ``ProxyFix`` trusts a single hop for ``X-Forwarded-*`` headers,
    so ``request.remote_addr`` is the originating client address recorded on
    refresh sessions.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)


def client_context() -> ClientContext:
    """Capture the caller's IP address and user agent for session bookkeeping.

    :returns: Context truncated to the storage limits; absent values stay ``None``.
    :rtype: ClientContext
    """
    ip = request.remote_addr or None
    ua = request.headers.get("User-Agent") or None
    return ClientContext(
        ip_address=ip[:MAX_IP_LENGTH] if ip else None,
        user_agent=ua[:MAX_USER_AGENT_LENGTH] if ua else None,
    )
