from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """Port for slow, salted password hashing."""

    def hash(self, raw: str) -> str: ...

    def verify(self, hashed: str, raw: str) -> bool: ...


class TokenHasher(Protocol):
    """Port for hashing refresh-token secrets.

    Implementations must be deterministic: the digest is looked up by
    equality, so the same secret always yields the same digest.
    """

    def hash(self, secret: str) -> str: ...

    def verify(self, hashed: str, secret: str) -> bool: ...
