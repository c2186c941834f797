"""Structured logging configuration with request correlation and secret redaction."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")
# Client-supplied ids are echoed into logs and headers: keep them short and printable.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")
_ENVIRON_KEY = "sessionauth.request_id"

# Extra attributes promoted to top-level JSON keys when present on a record.
EXTRA_KEYS = ("endpoint", "elapsed_ms", "user_id", "session_id", "revoked", "removed")

# Refresh tokens ("<id>.<64 hex>"), bare 64-hex secrets/hashes and bearer credentials.
_SECRET_PATTERNS = (
    re.compile(r"\b\d+\.[0-9a-f]{64}\b"),
    re.compile(r"\b[0-9a-f]{64}\b"),
    re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/=-]+"),
)
REDACTED = "[REDACTED]"

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"


def redact(text: str) -> str:
    """Mask refresh-token material and bearer credentials inside ``text``.

    :param text: Rendered log message.
    :type text: str
    :returns: Message with every secret-looking fragment replaced.
    :rtype: str
    """
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


class JSONFormatter(logging.Formatter):
    """One JSON object per line; message and traceback pass through :func:`redact`."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update({key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(payload, default=str)


class RedactingTextFormatter(logging.Formatter):
    """Human-readable single-line output for local development."""

    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record))


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``-`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.request_id = ensure_request_id() if has_request_context() else "-"
        return True


def _incoming_request_id() -> str | None:
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header, "").strip()
        if value and _REQUEST_ID_RE.match(value):
            return value
    return None


def ensure_request_id() -> str:
    """Return the id correlating this request's logs, minting one if needed.

    A well-formed ``X-Request-ID`` (or ``X-Correlation-ID``) from the caller is
    reused; anything else gets a fresh UUID4. Outside a request every call
    returns a new id.
    """
    if not has_request_context():
        return str(uuid4())
    current = request.environ.get(_ENVIRON_KEY)
    if current is None:
        current = request.environ[_ENVIRON_KEY] = _incoming_request_id() or str(uuid4())
    return current


def configure_logging(level: str | int = "INFO", fmt: str = "json") -> None:
    """Route the root logger to stdout.

    :param level: Level name or number; unknown names fall back to ``INFO``.
    :param fmt: ``"json"`` for structured output, ``"text"`` for a console layout.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(RedactingTextFormatter(TEXT_FORMAT) if fmt == "text" else JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Seed a request id per request and echo it back in ``X-Request-ID``."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:  # pragma: no cover - integration glue
        ensure_request_id()

    @app.after_request
    def _inject_response_header(response):  # pragma: no cover - integration glue
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id", "redact", "JSONFormatter"]
