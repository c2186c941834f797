"""Unit tests for the ``<user_id>.<secret>`` refresh token codec."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

import pytest

from sessionauth.services.auth.codec import (
    TokenFormatError,
    ensure_utc,
    generate_refresh_token,
    is_expired,
    parse_refresh_token,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_generate_prefixes_user_id_and_uses_64_hex_secret():
    data = generate_refresh_token(42, timedelta(days=30), now=NOW)

    user_part, _, secret = data.token.partition(".")
    assert user_part == "42"
    assert secret == data.secret
    assert re.fullmatch(r"[0-9a-f]{64}", secret)
    assert data.expires_at == NOW + timedelta(days=30)


def test_generated_secrets_differ():
    a = generate_refresh_token(1, timedelta(minutes=1))
    b = generate_refresh_token(1, timedelta(minutes=1))
    assert a.secret != b.secret


def test_parse_splits_on_first_separator_only():
    parsed = parse_refresh_token("7.abc.def")
    assert parsed.user_id == 7
    assert parsed.secret == "abc.def"


@pytest.mark.parametrize(
    "token",
    ["", "nodot", ".secret", "12.", "abc.secret", "-1.secret", "1e3.secret", " 1.secret",
     "\u00b2.secret", "1.\ud800", "1.s\u00e9cret", "1.has space"],
)
def test_parse_rejects_malformed(token):
    with pytest.raises(TokenFormatError):
        parse_refresh_token(token)


def test_parse_rejects_non_string():
    with pytest.raises(TokenFormatError):
        parse_refresh_token(None)  # type: ignore[arg-type]


def test_is_expired_is_strict():
    assert is_expired(NOW - timedelta(seconds=1), now=NOW) is True
    assert is_expired(NOW, now=NOW) is False
    assert is_expired(NOW + timedelta(seconds=1), now=NOW) is False


def test_ensure_utc_labels_naive_values():
    naive = datetime(2026, 1, 1, 12, 0)
    assert ensure_utc(naive) == NOW
    assert ensure_utc(naive).tzinfo is UTC
