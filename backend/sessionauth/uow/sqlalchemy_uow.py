"""
SQLAlchemy units of work over the Flask-scoped session.

Two flavours exist:

* :class:`SQLAlchemyUnitOfWork` commits on a clean exit (registration,
  profile edits, session writes).
* :class:`SQLAlchemyReadOnlyUnitOfWork` for lookups (login, refresh user
  checks, listings). It never commits and blocks writes while open.
"""

from __future__ import annotations

import re
from contextlib import suppress
from typing import Any

from flask import current_app
from sqlalchemy import event, text
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from sessionauth.core.extensions import db
from sessionauth.repositories import RefreshSessionRepository, UserRepository
from sessionauth.uow.base import UnitOfWork

_WRITE_SQL = re.compile(
    r"^\s*(insert|update|delete|merge|upsert|replace|alter|drop|truncate|create|grant|revoke)\b",
    re.IGNORECASE,
)


class _Repositories:
    """``users`` and ``sessions`` repositories bound to one session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.sessions = RefreshSessionRepository(session=session)


class SQLAlchemyUnitOfWork(_Repositories, UnitOfWork):
    """Read-write unit: commit on success, roll back on any exception."""

    def __init__(self) -> None:
        super().__init__(db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except BaseException:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class _WriteGuard:
    """Event hooks rejecting ORM flushes of pending changes and DML/DDL SQL."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.bind: Any = None

    @staticmethod
    def _on_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Read-only UnitOfWork: ORM flush blocked (pending changes).")

    @staticmethod
    def _on_execute(conn, cursor, statement, parameters, context, executemany) -> None:
        match = _WRITE_SQL.match(statement or "")
        if match:
            raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {match.group(1).upper()}")

    def install(self) -> None:
        self.bind = self.session.connection()
        event.listen(self.session, "before_flush", self._on_flush)
        event.listen(self.bind, "before_cursor_execute", self._on_execute)

    def remove(self) -> None:
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._on_flush)
        if self.bind is not None:
            with suppress(InvalidRequestError):
                event.remove(self.bind, "before_cursor_execute", self._on_execute)
        self.bind = None


class SQLAlchemyReadOnlyUnitOfWork(_Repositories, UnitOfWork):
    """
    Read-only unit.

    When the session is idle the unit opens (and later rolls back) its own
    transaction; on PostgreSQL and MySQL it also issues ``SET TRANSACTION``
    isolation and ``READ ONLY`` directives. When a transaction is already
    running (outer test fixture, earlier lookup) it joins it and only the
    write guard applies.

    :param isolation_level: Isolation for transactions this unit opens.
    :param enforce_db_readonly: Ask the database to reject writes as well.
    """

    _DIRECTIVE_DIALECTS = frozenset({"postgresql", "mysql", "mariadb"})

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(db.session)
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly
        self._owned: SessionTransaction | None = None
        self._guard = _WriteGuard(self.session)

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        try:
            self._owned = self.session.begin()
        except InvalidRequestError:
            # Transaction already begun (autobegin or outer fixture): join it.
            self._owned = None
        self._guard.install()
        if self._owned is not None:
            self._apply_directives()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._guard.remove()
        owned, self._owned = self._owned, None
        if owned is not None and owned.is_active:
            with suppress(SQLAlchemyError):
                owned.rollback()

    def _apply_directives(self) -> None:
        if self._guard.bind.dialect.name not in self._DIRECTIVE_DIALECTS:
            return
        statements = []
        if self.isolation_level:
            statements.append(f"SET TRANSACTION ISOLATION LEVEL {self.isolation_level.upper().strip()}")
        if self.enforce_db_readonly:
            statements.append("SET TRANSACTION READ ONLY")
        try:
            for stmt in statements:
                self.session.execute(text(stmt))
        except SQLAlchemyError as exc:
            current_app.logger.warning("uow.readonly.directives_failed error=%s", exc)

    def commit(self) -> None:
        """:raises RuntimeError: always; nothing read here is ever persisted."""
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
