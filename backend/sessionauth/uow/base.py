"""Transaction boundary contract used by the services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sessionauth.repositories import RefreshSessionRepository, UserRepository


class UnitOfWork(ABC):
    """
    One use-case transaction and the repositories that share it.

    Used as a context manager; whether a clean exit commits is up to the
    implementation (read-only units never do).
    """

    users: UserRepository
    sessions: RefreshSessionRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
