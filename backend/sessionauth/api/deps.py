"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from sessionauth.core.errors import Unauthorized
from sessionauth.services.auth.dto import ValidatedIdentity
from sessionauth.wiring import auth_service

F = TypeVar("F", bound=Callable[..., Any])


def json_body() -> dict[str, Any]:
    """Return the JSON body, treating a missing or non-object payload as empty."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def require_auth(func: F) -> F:
    """
    Ensure the request carries a valid access token for a live account.

    The JWT layer checks signature and expiry; the account is then resolved
    through :meth:`AuthService.validate_access_token` and stored on
    ``flask.g.identity``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        identity = auth_service().validate_access_token(get_jwt() or {})
        if identity is None:
            raise Unauthorized("Invalid access token", code="invalid_token")
        g.identity = identity
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_identity() -> ValidatedIdentity:
    """Identity attached by :func:`require_auth`."""

    identity = getattr(g, "identity", None)
    if identity is None:
        raise Unauthorized()
    return identity


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def no_content() -> Response:
    response = current_app.response_class(status=204)
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
