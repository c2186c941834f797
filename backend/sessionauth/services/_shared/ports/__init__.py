"""
sessionauth.services._shared.ports
==================================

*Ports* (hexagonal interfaces) the service layer depends on.

Modules
-------
- :mod:`session_store`:
    :class:`~.SessionStore` and :class:`~.SessionRecord`, plus the in-memory
    adapter used by unit tests.
- :mod:`token_provider`:
    :class:`~.TokenProvider` for signing access tokens.
- :mod:`hasher`:
    :class:`~.PasswordHasher` and :class:`~.TokenHasher`.
- :mod:`mailer`:
    :class:`~.Mailer` and :class:`~.OutgoingMail`.

Concrete adapters (SQLAlchemy, Redis, flask-jwt-extended, SMTP) live under
``sessionauth.infra``.
"""

from __future__ import annotations

from .hasher import PasswordHasher, TokenHasher
from .mailer import InMemoryMailer, Mailer, OutgoingMail
from .session_store import InMemorySessionStore, SessionRecord, SessionStore, newest_first
from .token_provider import StubTokenProvider, TokenProvider

__all__ = [
    "InMemoryMailer",
    "InMemorySessionStore",
    "Mailer",
    "OutgoingMail",
    "PasswordHasher",
    "SessionRecord",
    "SessionStore",
    "StubTokenProvider",
    "TokenHasher",
    "TokenProvider",
    "newest_first",
]
