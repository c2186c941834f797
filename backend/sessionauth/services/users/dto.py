# sessionauth/services/users/dto.py
from __future__ import annotations

from dataclasses import dataclass, field

from sessionauth.services.auth.dto import UserView

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserCreateIn:
    """
    Input DTO for registration.

    :param login: Desired login (unique among live accounts).
    :param email: Contact email (unique among live accounts).
    :param password: Raw password; hashed before storage.
    :param age: Declared age.
    :param description: Optional profile text.
    """

    login: str
    email: str
    password: str
    age: int
    description: str | None = None


@dataclass(frozen=True, slots=True)
class UserUpdateIn:
    """
    Partial profile update. Only keys present in ``fields`` are applied.

    :param fields: Subset of ``login``, ``email``, ``password``, ``age``,
        ``description``.
    """

    fields: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UserFilterIn:
    login_filter: str | None = None
    page: int = 1
    limit: int = 10


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPageOut:
    """
    One page of users.

    :param data: Users on this page.
    :param total: Matches across all pages.
    :param page: 1-based page number.
    :param limit: Page size.
    """

    data: list[UserView]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


@dataclass(frozen=True, slots=True)
class AvailabilityOut:
    login_exists: bool
    email_exists: bool
