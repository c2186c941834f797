# sessionauth/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from sessionauth.services._shared.ports import TokenProvider

# Claim names the JWT layer owns; callers may not override them.
RESERVED_CLAIMS = frozenset({"sub", "exp", "iat", "nbf", "jti", "type", "fresh"})


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    .. note::
       Requires an active Flask app context with ``JWT_SECRET_KEY`` set.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        claims = dict(additional_claims or {})
        clash = RESERVED_CLAIMS.intersection(claims)
        if clash:
            raise ValueError(f"Reserved JWT claims cannot be overridden: {sorted(clash)}")

        return cast(
            str,
            _create_access(
                identity=identity,
                additional_claims=claims,
                expires_delta=expires_delta,
            ),
        )

    def decode(self, token: str) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        return cast(dict[str, Any], decode_token(token))
