# sessionauth/services/users/service.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from sessionauth.models.user import User
from sessionauth.repositories.user import UserRepository
from sessionauth.services._shared.base import BaseService, service_boundary
from sessionauth.services._shared.converters import to_user_view
from sessionauth.services._shared.errors import ConflictError, NotFoundError
from sessionauth.services._shared.ports import PasswordHasher
from sessionauth.services.auth.dto import UserView
from sessionauth.services.auth.service import AuthService
from sessionauth.services.users.dto import (
    AvailabilityOut,
    UserCreateIn,
    UserFilterIn,
    UserPageOut,
    UserUpdateIn,
)

log = logging.getLogger(__name__)

LOGIN_TAKEN = "User with this login already exists"
EMAIL_TAKEN = "User with this email already exists"


class UserService(BaseService):
    """
    Account registration and self-service profile management.

    Session side effects (revocation on password change or deletion,
    verification mails on registration) are delegated to :class:`AuthService`.
    """

    def __init__(self, *, password_hasher: PasswordHasher, auth: AuthService) -> None:
        self.passwords = password_hasher
        self.auth = auth

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _ensure_unique(
        repo: UserRepository,
        *,
        login: str | None,
        email: str | None,
        exclude_id: int | None = None,
    ) -> None:
        """Raise :class:`ConflictError` when ``login`` or ``email`` is taken (login first)."""
        if login is not None and repo.exists_by_login(login, exclude_id=exclude_id):
            raise ConflictError("User", LOGIN_TAKEN)
        if email is not None and repo.exists_by_email(email, exclude_id=exclude_id):
            raise ConflictError("User", EMAIL_TAKEN)

    @staticmethod
    def _conflict_from(exc: IntegrityError) -> ConflictError:
        """Map a unique-index violation that raced past :meth:`_ensure_unique`."""
        detail = str(exc.orig).lower()
        if "email" in detail and "login" not in detail:
            return ConflictError("User", EMAIL_TAKEN)
        return ConflictError("User", LOGIN_TAKEN)

    @staticmethod
    def _get_or_404(repo: UserRepository, user_id: int) -> User:
        user = repo.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    @service_boundary
    def register(self, dto: UserCreateIn) -> UserView:
        """
        Create an account and, when verification is required, mail a code.

        :raises ConflictError: Login or email already used by a live account.
        """
        try:
            with self.rw_uow() as uow:
                self._ensure_unique(uow.users, login=dto.login, email=dto.email)
                user = User(
                    login=dto.login,
                    email=dto.email,
                    password_hash=self.passwords.hash(dto.password),
                    age=dto.age,
                    description=dto.description,
                    is_verified=not self.auth.cfg.require_verified_email,
                )
                uow.users.add(user)
                view = to_user_view(user)
        except IntegrityError as exc:
            raise self._conflict_from(exc) from exc

        log.info("users.registered", extra={"user_id": view.id})
        if not view.is_verified:
            self.auth.send_verification_email(view.id)
        return view

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @service_boundary
    def list_users(self, filters: UserFilterIn) -> UserPageOut:
        """Page through live users, newest first, filtered by login substring."""
        pagination = self.ensure_pagination(page=filters.page, limit=filters.limit)
        with self.ro_uow() as uow:
            page = uow.users.search(pagination, login_contains=filters.login_filter or None)
            items = [to_user_view(u) for u in page.items]
        return UserPageOut(
            data=items, total=page.total, page=pagination.page, limit=pagination.limit
        )

    @service_boundary
    def get_profile(self, user_id: int) -> UserView:
        with self.ro_uow() as uow:
            return to_user_view(self._get_or_404(uow.users, user_id))

    @service_boundary
    def check_availability(self, *, login: str | None = None, email: str | None = None) -> AvailabilityOut:
        """Report whether ``login`` / ``email`` are already used by live accounts."""
        with self.ro_uow() as uow:
            return AvailabilityOut(
                login_exists=bool(login) and uow.users.exists_by_login(login or ""),
                email_exists=bool(email) and uow.users.exists_by_email(email or ""),
            )

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    @service_boundary
    def update_profile(self, user_id: int, dto: UserUpdateIn) -> UserView:
        """
        Apply a partial profile update.

        A new password is hashed and signs the user out everywhere.

        :raises NotFoundError: The account does not exist.
        :raises ConflictError: The new login/email is taken.
        """
        changes: dict[str, Any] = dict(dto.fields)
        password = changes.pop("password", None)

        try:
            with self.rw_uow() as uow:
                user = self._get_or_404(uow.users, user_id)
                self._ensure_unique(
                    uow.users,
                    login=changes.get("login"),
                    email=changes.get("email"),
                    exclude_id=user_id,
                )
                if password is not None:
                    changes["password_hash"] = self.passwords.hash(str(password))
                uow.users.update(user, **changes)
                view = to_user_view(user)
        except IntegrityError as exc:
            raise self._conflict_from(exc) from exc

        if password is not None:
            revoked = self.auth.revoke_all_sessions(user_id)
            log.info("users.password_changed", extra={"user_id": user_id, "revoked": revoked})
        return view

    @service_boundary
    def delete_profile(self, user_id: int) -> None:
        """Soft-delete the account and revoke all of its sessions."""
        with self.rw_uow() as uow:
            user = self._get_or_404(uow.users, user_id)
            uow.users.delete(user)
        self.auth.revoke_all_sessions(user_id)
        log.info("users.deleted", extra={"user_id": user_id})
