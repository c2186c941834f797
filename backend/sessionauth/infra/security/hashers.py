"""Credential hashing adapters."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from sessionauth.services._shared.ports import PasswordHasher, TokenHasher


@dataclass(slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Salted password hashing via :mod:`werkzeug.security`.

    :param method: Werkzeug method string (``"scrypt"`` by default).
    """

    method: str = "scrypt"

    def hash(self, raw: str) -> str:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(raw, method=self.method)

    def verify(self, hashed: str, raw: str) -> bool:
        if not hashed or not isinstance(raw, str):
            return False
        # ``check_password_hash`` is untyped; coerce for mypy.
        return bool(check_password_hash(hashed, raw))


class Sha256TokenHasher(TokenHasher):
    """
    Deterministic SHA-256 digest of refresh secrets.

    Secrets carry 256 bits of entropy, so an unsalted fast hash is enough and
    keeps the ``(user_id, token_hash)`` lookup indexable.
    """

    def hash(self, secret: str) -> str:
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()

    def verify(self, hashed: str, secret: str) -> bool:
        return hmac.compare_digest(hashed, self.hash(secret))
