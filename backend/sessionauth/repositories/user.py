"""User repository: live-account lookups and profile persistence."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, cast

from sqlalchemy import Select, select

from sessionauth.models.user import User
from sessionauth.repositories.base import BaseRepository, Page, Pagination


def _escape_like(value: str) -> str:
    """Make ``%`` and ``_`` match literally (escape character ``\\``)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Every read excludes soft-deleted accounts. It NEVER verifies passwords or
    issues tokens; that is the authentication service's job.
    """

    model = User
    sortable = {"id": "id", "login": "login", "email": "email", "created_at": "created_at"}
    # Profile fields; the service hashes passwords before they reach here.
    updatable = frozenset({"login", "email", "age", "description", "password_hash"})

    def _base_select(self) -> Select[Any]:
        return select(User).where(User.deleted_at.is_(None))

    def _soft_delete(self, instance: User) -> bool:
        instance.deleted_at = datetime.now(UTC)
        return True

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_login(self, login: str) -> User | None:
        """Fetch a live user by exact login."""
        return self.find_one(User.login == login.strip())

    def get_by_email(self, email: str) -> User | None:
        """Fetch a live user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        return self.find_one(User.email == email.lower().strip())

    def exists_by_login(self, login: str, *, exclude_id: int | None = None) -> bool:
        criteria = [User.login == login.strip()]
        if exclude_id is not None:
            criteria.append(User.id != exclude_id)
        return self.exists(*criteria)

    def exists_by_email(self, email: str, *, exclude_id: int | None = None) -> bool:
        """Return ``True`` when a live user with the provided email exists.

        :param email: Email address to normalise and search.
        :param exclude_id: Ignore this user (profile edits keep their own email).
        :returns: ``True`` if a row is found; otherwise ``False``.
        """
        criteria = [User.email == email.lower().strip()]
        if exclude_id is not None:
            criteria.append(User.id != exclude_id)
        return self.exists(*criteria)

    # ---------------------------- Listing ----------------------------

    def search(self, pagination: Pagination, *, login_contains: str | None = None) -> Page[User]:
        """Page through live users, newest first, optionally filtering by login.

        :param pagination: Page and limit; sort tokens default to ``-created_at``.
        :param login_contains: Case-insensitive substring of the login.
        :returns: Page of users and the total match count.
        """
        criteria = []
        if login_contains:
            pattern = _escape_like(login_contains)
            criteria.append(User.login.ilike(f"%{pattern}%", escape="\\"))
        if not pagination.sort:
            pagination = Pagination(page=pagination.page, limit=pagination.limit, sort=["-created_at"])
        return cast(Page[User], self.paginate(pagination, *criteria, newest_first=True))
