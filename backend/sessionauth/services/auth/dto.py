# sessionauth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param login: Account login.
    :type login: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    login: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh and logout.

    :param refresh_token: Opaque ``<user_id>.<secret>`` token.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class VerifyEmailIn:
    email: str
    code: str


@dataclass(frozen=True, slots=True)
class ClientContext:
    """
    Request metadata recorded on new sessions.

    :param ip_address: Client IP (after proxy resolution).
    :param user_agent: Raw ``User-Agent`` header.
    """

    ip_address: str | None = None
    user_agent: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserView:
    """
    Public projection of an account. Never carries credentials or codes.
    """

    id: int
    login: str
    email: str
    age: int
    description: str | None
    is_verified: bool
    role: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Signed access JWT.
    :type access_token: str
    :param refresh_token: Opaque refresh token.
    :type refresh_token: str
    :param user: Authenticated user.
    :type user: UserView
    """

    access_token: str
    refresh_token: str
    user: UserView


@dataclass(frozen=True, slots=True)
class SessionView:
    id: int
    ip_address: str | None
    user_agent: str | None
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class MessageOut:
    message: str


@dataclass(frozen=True, slots=True)
class ValidatedIdentity:
    """
    Caller identity resolved from access-token claims.

    :param user_id: Live account id.
    :param login: Current login.
    :param email: Current email.
    :param role: Authorization role.
    :param session_id: Refresh session the token was issued with, when present.
    """

    user_id: int
    login: str
    email: str
    role: str
    session_id: int | None


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """
    Token and verification policy.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh session lifetime.
    :type refresh_expires: timedelta
    :param verification_code_expires: Lifetime of an email verification code.
    :type verification_code_expires: timedelta
    :param require_verified_email: Reject logins of unverified accounts.
    :type require_verified_email: bool
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=30)
    verification_code_expires: timedelta = timedelta(minutes=15)
    require_verified_email: bool = True
