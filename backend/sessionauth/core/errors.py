"""RFC 7807 (``application/problem+json``) error responses for the API.

Every failure leaving the app, whether raised by a view, a service, marshmallow,
flask-jwt-extended or the database, is rendered as::

    {"type": "about:blank", "title": "Unauthorized", "status": 401,
     "detail": "Invalid refresh token", "instance": "/auth/refresh",
     "code": "invalid_refresh_token", "request_id": "..."}

``code`` is the stable, machine-readable part clients should branch on.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from sessionauth.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

_DEFAULT_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    500: "internal_server_error",
    503: "service_unavailable",
}


def _http_status_to_code(status_code: int) -> str:
    return _DEFAULT_CODES.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Problem Details body for the current request."""
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def _problem_response(problem: dict[str, Any]) -> Response:
    resp = jsonify(problem)
    resp.mimetype = PROBLEM_MIMETYPE
    resp.status_code = problem["status"]
    if problem["status"] == HTTPStatus.UNAUTHORIZED:
        resp.headers["WWW-Authenticate"] = f'Bearer error="{problem["code"]}"'
    return resp


def _respond(
    status: int,
    message: str,
    *,
    code: str | None = None,
    details: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> tuple[Response, int]:
    payload = _as_problem(
        status=int(status), code=code or _http_status_to_code(status), message=message, details=details
    )
    level = logging.ERROR if status >= 500 else logging.WARNING
    log.log(
        level,
        "problem status=%s code=%s detail=%s",
        payload["status"],
        payload["code"],
        message,
        exc_info=exc_info,
    )
    return _problem_response(payload), int(status)


def problem(status: int, message: str, code: str | None = None) -> tuple[Response, int]:
    """
    Problem response for callbacks that must return instead of raise.

    The flask-jwt-extended loaders are the main users.

    :param status: HTTP status code.
    :param message: Client-safe description.
    :param code: Machine-readable code; derived from ``status`` when omitted.
    :returns: ``(response, status)`` tuple.
    """
    return _respond(status, message, code=code)


class APIError(Exception):
    """
    An error that already knows its HTTP rendering.

    Parameters
    ----------
    message : str
        Client-safe description (``detail``).
    status_code : int, optional
        HTTP status; subclasses fix it.
    code : str, optional
        Machine-readable identifier, snake_case.
    details : dict[str, Any] | None, optional
        Extra structured data placed under ``details``.
    """

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "bad_request"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code or type(self).status_code)
        self.code = code or type(self).code
        self.details = details or {}


class BadRequest(APIError):
    """Rejected verification attempts and malformed commands."""

    def __init__(self, message: str = "Bad request", code: str = "bad_request") -> None:
        super().__init__(message, code=code)


class Unauthorized(APIError):
    status_code = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, code=code)


class Forbidden(APIError):
    status_code = HTTPStatus.FORBIDDEN
    code = "forbidden"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFound(APIError):
    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class Conflict(APIError):
    """Login or email already taken, or a unique index fired."""

    status_code = HTTPStatus.CONFLICT
    code = "conflict"

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message)


class InternalError(APIError):
    """Failures whose detail stays in the logs."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    code = "internal_server_error"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)


def _register_jwt_loaders() -> None:
    """Every access-token failure becomes a 401 problem."""
    from sessionauth.core.extensions import jwt

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return problem(HTTPStatus.UNAUTHORIZED, "Missing or malformed access token")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return problem(HTTPStatus.UNAUTHORIZED, "Invalid access token", code="invalid_token")

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict, jwt_payload: dict):
        return problem(HTTPStatus.UNAUTHORIZED, "Access token has expired", code="token_expired")

    @jwt.user_lookup_error_loader
    def _user_lookup_failed(jwt_header: dict, jwt_payload: dict):
        return problem(HTTPStatus.UNAUTHORIZED, "Unauthorized")


def init_app(app: Flask) -> None:
    """
    Register the problem+json handlers on ``app``.

    Service errors go through
    :meth:`sessionauth.services._shared.base.BaseService.translate_exceptions`;
    database and unexpected errors are logged with their traceback and
    reported generically.
    """
    from sessionauth.services._shared.base import BaseService
    from sessionauth.services._shared.errors import ServiceError

    _register_jwt_loaders()

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _respond(
            err.status_code,
            err.message,
            code=err.code,
            details=err.details or None,
            exc_info=err.status_code >= 500,
        )

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = BaseService.translate_exceptions(err)
        if isinstance(translated, APIError):
            return handle_api_error(translated)
        return handle_unexpected_error(err)  # pragma: no cover - translation is total

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return _respond(status, message)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return _respond(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "Validation failed",
            code="validation_error",
            details={"errors": err.messages},
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Two registrations racing past the uniqueness check end up here.
        return _respond(HTTPStatus.CONFLICT, "Resource conflict", exc_info=True)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        return _respond(
            HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable", exc_info=True
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return _respond(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error", exc_info=True)
