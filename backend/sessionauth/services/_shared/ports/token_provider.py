from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol


class TokenProvider(Protocol):
    """Port for signing short-lived access tokens."""

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str: ...

    def decode(self, token: str) -> dict[str, Any]: ...


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests.

    Tokens are opaque ``access.<n>`` strings; their payloads are kept in memory
    so tests can inspect the claims that would have been signed.
    """

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        self._seq += 1
        token = f"access.{self._seq}"
        payload: dict[str, Any] = {
            "sub": identity,
            "type": "access",
            "exp": int((datetime.now(UTC) + (expires_delta or timedelta(minutes=15))).timestamp()),
        }
        # Claims must survive a JSON round-trip like a real JWT payload.
        payload.update(json.loads(json.dumps(additional_claims or {})))
        self._issued[token] = payload
        return token

    def decode(self, token: str) -> dict[str, Any]:
        return self._issued[token]
