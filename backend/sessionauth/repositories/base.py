"""Repository base for SQLAlchemy 2.x aggregates.

Repositories are persistence-only: they build statements, flush, and report
results. Transactions belong to the unit of work that handed them a session.

- Reads start from :meth:`BaseRepository._base_select`, so soft-deleted rows
  stay hidden everywhere.
- Sorting only accepts keys listed in ``sortable``; the primary key is
  always the final tiebreaker so pages never overlap.
- Updates only accept keys listed in ``updatable``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import Session

from sessionauth.core.extensions import db

E = TypeVar("E")


@dataclass(slots=True)
class Pagination:
    """1-based page request.

    :param page: Page number, starting at 1.
    :param limit: Rows per page.
    :param sort: Public sort keys; a leading ``-`` means descending
        (``["-created_at"]``).
    """

    page: int
    limit: int
    sort: list[str] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * max(self.limit, 1)


@dataclass(slots=True)
class Page(Generic[E]):
    """One slice of results plus the unsliced match count."""

    items: Sequence[E]
    total: int
    page: int
    limit: int


def split_sort_key(token: str) -> tuple[str, bool]:
    """``"-created_at"`` -> ``("created_at", True)``."""
    token = token.strip()
    if token.startswith("-"):
        return token[1:].strip(), True
    return token, False


class BaseRepository(Generic[E]):
    """Shared CRUD for one mapped model.

    Subclasses set ``model`` and may set ``sortable`` (public key to mapped
    attribute name) and ``updatable`` (keys :meth:`update` accepts). Override
    :meth:`_base_select` to hide rows and :meth:`_soft_delete` to keep them.
    """

    model: type[E]
    sortable: ClassVar[Mapping[str, str]] = {}
    updatable: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        """Explicit session if given, else the Flask-scoped one."""
        return self._session if self._session is not None else cast(Session, db.session)

    # ------------------------------ hooks ------------------------------------

    def _base_select(self) -> Select[Any]:
        return select(self.model)

    def _soft_delete(self, instance: E) -> bool:
        """Mark ``instance`` deleted in place; ``False`` means hard delete."""
        return False

    @property
    def _pk(self) -> Any:
        return getattr(self.model, "id")

    # ------------------------------ reads ------------------------------------

    def get(self, entity_id: Any) -> E | None:
        """Visible entity by primary key, or ``None``."""
        return self.find_one(self._pk == entity_id)

    def find_one(self, *criteria: Any) -> E | None:
        stmt = self._base_select().where(and_(*criteria))
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, *criteria: Any) -> bool:
        stmt = self._base_select().where(and_(*criteria)).limit(1)
        return self.session.execute(stmt).first() is not None

    def _ordered(self, stmt: Select[Any], sort: Sequence[str], *, pk_desc: bool) -> Select[Any]:
        clauses = []
        for token in sort:
            key, desc = split_sort_key(token)
            attr_name = self.sortable.get(key)
            if attr_name is None:
                continue
            column = getattr(self.model, attr_name)
            clauses.append(column.desc() if desc else column.asc())
        clauses.append(self._pk.desc() if pk_desc else self._pk.asc())
        return stmt.order_by(*clauses)

    def paginate(self, pagination: Pagination, *criteria: Any, newest_first: bool = False) -> Page[E]:
        """Filter, order and slice visible rows.

        :param pagination: Page request; unknown sort keys are ignored.
        :param criteria: Extra ``WHERE`` clauses.
        :param newest_first: Break ties by descending primary key.
        :returns: The requested page and the total number of matches.
        """
        stmt = self._base_select()
        if criteria:
            stmt = stmt.where(and_(*criteria))

        total = self.session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()

        limit = max(pagination.limit, 1)
        sliced = self._ordered(stmt, pagination.sort, pk_desc=newest_first)
        items = self.session.execute(sliced.limit(limit).offset(pagination.offset)).scalars().all()
        return Page(items=list(items), total=int(total), page=pagination.page, limit=limit)

    # ------------------------------ writes -----------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.flush()
        return instance

    def update(self, instance: E, **fields: Any) -> E:
        """Assign whitelisted ``fields`` through ``setattr`` (model validators run).

        :raises ValueError: A key outside ``updatable`` was given.
        """
        rejected = sorted(set(fields) - self.updatable)
        if rejected:
            raise ValueError(f"Unknown or non-updatable fields: {rejected}")
        for name, value in fields.items():
            setattr(instance, name, value)
        self.flush()
        return instance

    def delete(self, instance: E) -> None:
        if not self._soft_delete(instance):
            self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()
