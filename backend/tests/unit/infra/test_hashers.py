"""Tests for the password and refresh-secret hashers."""

from __future__ import annotations

import hashlib

import pytest

from sessionauth.infra.security.hashers import Sha256TokenHasher, WerkzeugPasswordHasher


@pytest.fixture()
def passwords() -> WerkzeugPasswordHasher:
    return WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")


def test_password_hash_is_salted_and_verifies(passwords):
    h1 = passwords.hash("secret123")
    h2 = passwords.hash("secret123")

    assert h1 != h2
    assert "secret123" not in h1
    assert passwords.verify(h1, "secret123")
    assert not passwords.verify(h1, "secret124")


def test_password_hash_rejects_empty(passwords):
    with pytest.raises(ValueError):
        passwords.hash("")


def test_password_verify_tolerates_missing_hash(passwords):
    assert passwords.verify("", "secret123") is False


def test_default_method_is_scrypt():
    assert WerkzeugPasswordHasher().hash("secret123").startswith("scrypt:")


def test_token_hash_is_deterministic_sha256():
    hasher = Sha256TokenHasher()
    secret = "ab" * 32

    assert hasher.hash(secret) == hashlib.sha256(secret.encode()).hexdigest()
    assert hasher.hash(secret) == hasher.hash(secret)
    assert hasher.verify(hasher.hash(secret), secret)
    assert not hasher.verify(hasher.hash(secret), "cd" * 32)
