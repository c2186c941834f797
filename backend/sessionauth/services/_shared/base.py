# sessionauth/services/_shared/base.py
from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from sessionauth.core import errors as api_errors
from sessionauth.repositories.base import Pagination
from sessionauth.services._shared.errors import (
    AlreadyVerifiedError,
    CodeExpiredError,
    ConflictError,
    ForbiddenError,
    InternalServiceError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    NotVerifiedError,
    RefreshExpiredError,
    ServiceError,
)
from sessionauth.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def service_boundary(fn: F) -> F:
    """
    Guard a service entry point.

    :class:`ServiceError` subclasses propagate unchanged. Anything else is
    logged with its traceback and re-raised as :class:`InternalServiceError`,
    so no driver or library detail reaches the HTTP layer.
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except ServiceError:
            raise
        except Exception as exc:
            log.error("service.%s.failed", fn.__name__, exc_info=True)
            raise InternalServiceError() from exc

    return wrapper  # type: ignore[return-value]


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Offer shared validation helpers (pagination).

    Notes
    -----
    Services never touch the global session directly; always use a Unit of Work.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self, *, isolation: str | None = None) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "REPEATABLE READ").
        :type isolation: str | None
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION
        )

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(
        self, *, page: int, limit: int, sort: Iterable[str] | None = None, max_limit: int = 100
    ) -> Pagination:
        """
        Build a Pagination value object with basic clamping.

        :param page: 1-based page number.
        :param limit: Page size, clamped to ``[1, max_limit]``.
        :param sort: Sort tokens like ``["-created_at", "login"]``.
        :returns: Pagination instance.
        :rtype: Pagination
        """
        page = max(1, int(page))
        limit = min(max(1, int(limit)), max_limit)
        return Pagination(page=page, limit=limit, sort=list(sort or []))

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be rendered.
        :rtype: Exception
        """
        if isinstance(exc, RefreshExpiredError):
            return api_errors.Unauthorized(str(exc), code="refresh_token_expired")

        if isinstance(exc, InvalidRefreshTokenError):
            return api_errors.Unauthorized(str(exc), code="invalid_refresh_token")

        if isinstance(exc, InvalidCredentialsError):
            return api_errors.Unauthorized(str(exc), code="invalid_credentials")

        if isinstance(exc, NotVerifiedError):
            return api_errors.Unauthorized(str(exc), code="email_not_verified")

        if isinstance(exc, ForbiddenError):
            return api_errors.Forbidden(str(exc))

        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, AlreadyVerifiedError):
            return api_errors.BadRequest(str(exc), code="already_verified")

        if isinstance(exc, InvalidCodeError):
            return api_errors.BadRequest(str(exc), code="invalid_code")

        if isinstance(exc, CodeExpiredError):
            return api_errors.BadRequest(str(exc), code="code_expired")

        if isinstance(exc, InternalServiceError):
            return api_errors.InternalError(str(exc))

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.BadRequest(str(exc))

        return exc
