"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or
HTTP. They are the stable contract between services and the API layer; the
translation to RFC 7807 responses lives in ``sessionauth/core/errors.py`` via
``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - Subclasses carry a default message that is safe to show to clients.
    """

    default_message = "Service error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(ServiceError):
    """Unknown login or wrong password (deliberately indistinguishable)."""

    default_message = "Invalid credentials"


class NotVerifiedError(ServiceError):
    """Credentials are right but the email address is still unverified."""

    default_message = "Please verify your email before logging in"


class InvalidRefreshTokenError(ServiceError):
    """Refresh token is malformed, unknown, revoked or lost a rotation race."""

    default_message = "Invalid refresh token"


class RefreshExpiredError(InvalidRefreshTokenError):
    """Refresh session exists but its expiry has passed."""

    default_message = "Refresh token has expired"


class ForbiddenError(ServiceError):
    """Caller may not act on the target (or the target does not exist)."""

    default_message = "Forbidden"


# --------------------------------------------------------------------------- #
# Email verification
# --------------------------------------------------------------------------- #


class AlreadyVerifiedError(ServiceError):
    default_message = "Email is already verified"


class InvalidCodeError(ServiceError):
    default_message = "Invalid verification code"


class CodeExpiredError(ServiceError):
    default_message = "Verification code has expired"


# --------------------------------------------------------------------------- #
# Generic resource errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a uniqueness rule is violated.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Client-safe explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return self.detail


class InternalServiceError(ServiceError):
    """Unexpected failure inside a service; details stay in the logs."""

    default_message = "Internal server error"
