"""Opaque refresh token format: ``"<user_id>.<secret>"``.

The secret is 32 random bytes rendered as 64 lowercase hex characters. The
user id prefix lets the server narrow the session lookup to one account
before comparing digests.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

SECRET_BYTES = 32
SEPARATOR = "."
_USER_ID = re.compile(r"[0-9]+")
# Printable ASCII without spaces; anything else cannot be a secret we issued.
_SECRET = re.compile(r"[!-~]+")


class TokenFormatError(ValueError):
    """Raised when a refresh token does not match ``<user_id>.<secret>``."""


@dataclass(frozen=True, slots=True)
class RefreshTokenData:
    """
    A freshly generated refresh token.

    :param token: Value handed to the client.
    :param secret: Random part; only its digest is stored.
    :param expires_at: UTC instant after which the session is unusable.
    """

    token: str
    secret: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class ParsedRefreshToken:
    user_id: int
    secret: str


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are labelled UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utcnow() -> datetime:
    return datetime.now(UTC)


def generate_refresh_token(
    user_id: int, ttl: timedelta, *, now: datetime | None = None
) -> RefreshTokenData:
    """Mint a refresh token for ``user_id`` valid for ``ttl``.

    :param user_id: Owner of the token.
    :param ttl: Lifetime of the session.
    :param now: Issuance instant (defaults to the current UTC time).
    :returns: Token, its secret and expiry.
    :rtype: RefreshTokenData
    """
    secret = secrets.token_hex(SECRET_BYTES)
    issued = ensure_utc(now) if now is not None else utcnow()
    return RefreshTokenData(
        token=f"{user_id}{SEPARATOR}{secret}",
        secret=secret,
        expires_at=issued + ttl,
    )


def parse_refresh_token(token: str) -> ParsedRefreshToken:
    """Split a refresh token at its first separator.

    Dots after the first one belong to the secret.

    :raises TokenFormatError: When the separator is missing, either part is
        empty, the user id is not a base-10 integer, or the secret holds
        characters outside printable ASCII.
    """
    if not isinstance(token, str):
        raise TokenFormatError("Refresh token must be a string")
    user_part, sep, secret = token.partition(SEPARATOR)
    if not sep or not user_part or not secret:
        raise TokenFormatError("Refresh token must look like '<user_id>.<secret>'")
    if not _USER_ID.fullmatch(user_part):
        raise TokenFormatError("Refresh token user id must be an integer")
    if not _SECRET.fullmatch(secret):
        raise TokenFormatError("Refresh token secret is malformed")
    return ParsedRefreshToken(user_id=int(user_part), secret=secret)


def is_expired(expires_at: datetime, *, now: datetime | None = None) -> bool:
    """Return ``True`` once ``expires_at`` lies strictly in the past.

    A session whose expiry equals ``now`` is still usable.
    """
    current = ensure_utc(now) if now is not None else utcnow()
    return ensure_utc(expires_at) < current
