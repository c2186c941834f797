# sessionauth/services/auth/service.py
from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from sessionauth.models.user import User
from sessionauth.repositories.user import UserRepository
from sessionauth.services._shared.base import BaseService, service_boundary
from sessionauth.services._shared.converters import to_session_view, to_user_view
from sessionauth.services._shared.errors import (
    AlreadyVerifiedError,
    CodeExpiredError,
    ForbiddenError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    NotVerifiedError,
    RefreshExpiredError,
)
from sessionauth.services._shared.ports import (
    Mailer,
    PasswordHasher,
    SessionStore,
    TokenHasher,
    TokenProvider,
)
from sessionauth.services.auth.codec import (
    TokenFormatError,
    generate_refresh_token,
    is_expired,
    parse_refresh_token,
    utcnow,
)
from sessionauth.services.auth.dto import (
    AuthConfig,
    ClientContext,
    LoginIn,
    MessageOut,
    RefreshIn,
    SessionView,
    TokenPairOut,
    UserView,
    ValidatedIdentity,
    VerifyEmailIn,
)
from sessionauth.services.auth.templates import verification_email

log = logging.getLogger(__name__)

CODE_DIGITS = 6


class AuthService(BaseService):
    """
    Authentication lifecycle service.

    Issues access/refresh pairs, rotates refresh sessions, manages a user's
    active sessions and runs email verification. The service holds no mutable
    state between calls: sessions live in the :class:`SessionStore`, users in
    the database behind the units of work.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        session_store: SessionStore,
        password_hasher: PasswordHasher,
        token_hasher: TokenHasher,
        mailer: Mailer,
        cfg: AuthConfig | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for signing access tokens.
        :param session_store: Persistent store of refresh sessions.
        :param password_hasher: Verifies stored password hashes.
        :param token_hasher: Digests refresh secrets before storage/lookup.
        :param mailer: Delivers verification codes.
        :param cfg: Token lifetimes and verification policy.
        """
        self.tokens = token_provider
        self.sessions = session_store
        self.passwords = password_hasher
        self.token_hasher = token_hasher
        self.mailer = mailer
        self.cfg = cfg or AuthConfig()

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    @service_boundary
    def login(self, dto: LoginIn, ctx: ClientContext | None = None) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :param ctx: Client metadata recorded on the new session.
        :returns: Access/refresh pair and the user view.
        :raises InvalidCredentialsError: Unknown login or wrong password.
        :raises NotVerifiedError: Email unverified while verification is required.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_login(dto.login)
            if user is None or not self.passwords.verify(user.password_hash, dto.password):
                log.info("auth.login.failed")
                raise InvalidCredentialsError()
            if self.cfg.require_verified_email and not user.is_verified:
                log.info("auth.login.unverified", extra={"user_id": user.id})
                raise NotVerifiedError()
            view = to_user_view(user)

        pair = self.issue_token_pair(view, ctx)
        log.info("auth.login.success", extra={"user_id": view.id})
        return pair

    @service_boundary
    def issue_token_pair(self, user: UserView, ctx: ClientContext | None = None) -> TokenPairOut:
        """
        Register a refresh session, then sign the matching access token.

        The session row exists before either token leaves the server.

        :param user: Account the pair is issued for.
        :param ctx: Client metadata recorded on the session.
        :returns: Token pair carrying ``user``.
        """
        ctx = ctx or ClientContext()
        minted = generate_refresh_token(user.id, self.cfg.refresh_expires)
        record = self.sessions.create(
            user_id=user.id,
            token_hash=self.token_hasher.hash(minted.secret),
            expires_at=minted.expires_at,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )
        claims: dict[str, Any] = {
            "userId": user.id,
            "login": user.login,
            "email": user.email,
            "role": user.role,
            "sid": record.id,
        }
        access = self.tokens.create_access_token(
            identity=str(user.id),
            additional_claims=claims,
            expires_delta=self.cfg.access_expires,
        )
        log.info("auth.session.issued", extra={"user_id": user.id, "session_id": record.id})
        return TokenPairOut(access_token=access, refresh_token=minted.token, user=user)

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    @service_boundary
    def refresh(self, dto: RefreshIn, ctx: ClientContext | None = None) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - The presented session is revoked before the new one is created.
        - The revoke is conditional: when two requests race with the same
          token only one of them wins, the other gets ``InvalidRefreshTokenError``.
        - An expired session is revoked on sight.
        """
        try:
            parsed = parse_refresh_token(dto.refresh_token)
        except TokenFormatError:
            log.info("auth.refresh.malformed")
            raise InvalidRefreshTokenError() from None

        with self.ro_uow() as uow:
            user = uow.users.get(parsed.user_id)
            if user is None:
                log.info("auth.refresh.unknown_user", extra={"user_id": parsed.user_id})
                raise InvalidRefreshTokenError()
            view = to_user_view(user)

        record = self.sessions.find_active_by_hash(
            parsed.user_id, self.token_hasher.hash(parsed.secret)
        )
        if record is None or not self.token_hasher.verify(record.token_hash, parsed.secret):
            log.info("auth.refresh.unknown_session", extra={"user_id": parsed.user_id})
            raise InvalidRefreshTokenError()

        if is_expired(record.expires_at):
            self.sessions.revoke(record.id)
            log.info(
                "auth.refresh.expired",
                extra={"user_id": parsed.user_id, "session_id": record.id},
            )
            raise RefreshExpiredError()

        if not self.sessions.revoke(record.id):
            log.warning(
                "auth.refresh.race_lost",
                extra={"user_id": parsed.user_id, "session_id": record.id},
            )
            raise InvalidRefreshTokenError()

        pair = self.issue_token_pair(view, ctx)
        log.info("auth.refresh.rotated", extra={"user_id": view.id, "session_id": record.id})
        return pair

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    @service_boundary
    def logout(self, dto: RefreshIn) -> None:
        """
        Revoke the session named by a refresh token.

        Unknown or already revoked sessions are ignored so logout stays
        idempotent.

        :raises InvalidRefreshTokenError: If the token is malformed.
        """
        try:
            parsed = parse_refresh_token(dto.refresh_token)
        except TokenFormatError:
            raise InvalidRefreshTokenError() from None

        record = self.sessions.find_active_by_hash(
            parsed.user_id, self.token_hasher.hash(parsed.secret)
        )
        if record is not None and self.sessions.revoke(record.id):
            log.info("auth.logout", extra={"user_id": parsed.user_id, "session_id": record.id})

    # ------------------------------------------------------------------ #
    # Session management
    # ------------------------------------------------------------------ #

    @service_boundary
    def list_sessions(self, user_id: int) -> list[SessionView]:
        """Active sessions of ``user_id``, newest first."""
        return [to_session_view(r) for r in self.sessions.list_active_for_user(user_id)]

    @service_boundary
    def revoke_session(self, user_id: int, session_id: int) -> None:
        """
        Revoke one of the caller's sessions.

        :raises ForbiddenError: The session does not exist or belongs to someone else.
        """
        record = self.sessions.get(session_id)
        if record is None or record.user_id != user_id:
            raise ForbiddenError("Cannot revoke this session")
        self.sessions.revoke(session_id)
        log.info("auth.session.revoked", extra={"user_id": user_id, "session_id": session_id})

    @service_boundary
    def revoke_all_sessions_except_current(self, user_id: int, current_session_id: int) -> int:
        """Sign out every other device. :returns: number of sessions revoked."""
        count = self.sessions.revoke_all_except(user_id, current_session_id)
        log.info(
            "auth.session.revoked_others",
            extra={"user_id": user_id, "session_id": current_session_id},
        )
        return count

    @service_boundary
    def revoke_all_sessions(self, user_id: int) -> int:
        """Revoke every active session of ``user_id``."""
        count = self.sessions.revoke_all(user_id)
        log.info("auth.session.revoked_all", extra={"user_id": user_id})
        return count

    # ------------------------------------------------------------------ #
    # Email verification
    # ------------------------------------------------------------------ #

    @staticmethod
    def generate_verification_code() -> str:
        """Return a uniformly random 6-digit code (leading zeros allowed)."""
        return f"{secrets.randbelow(10**CODE_DIGITS):0{CODE_DIGITS}d}"

    def _issue_verification_code(self, lookup: Callable[[UserRepository], User | None], key: str | int) -> None:
        """
        Store a new code on the account ``lookup`` finds, then mail it.

        The message goes out only after the code is committed.
        """
        with self.rw_uow() as uow:
            user = lookup(uow.users)
            if user is None:
                raise NotFoundError("User", key)
            if user.is_verified:
                raise AlreadyVerifiedError()
            code = self.generate_verification_code()
            user.verification_code = code
            user.verification_code_expires_at = utcnow() + self.cfg.verification_code_expires
            uow.users.flush()
            user_id, email = user.id, user.email

        minutes = int(self.cfg.verification_code_expires / timedelta(minutes=1))
        self.mailer.send(verification_email(email, code, minutes=minutes))
        log.info("auth.verification.sent", extra={"user_id": user_id})

    @service_boundary
    def send_verification_email(self, user_id: int) -> None:
        """(Re)issue and mail a verification code for ``user_id``."""
        self._issue_verification_code(lambda users: users.get(user_id), user_id)

    @service_boundary
    def request_email_verification(self, email: str) -> MessageOut:
        """
        Issue a fresh verification code for the account owning ``email``.

        :raises NotFoundError: No live account uses ``email``.
        :raises AlreadyVerifiedError: The account is already verified.
        """
        self._issue_verification_code(lambda users: users.get_by_email(email), email)
        return MessageOut(message="Verification email sent")

    @service_boundary
    def verify_email(self, dto: VerifyEmailIn) -> MessageOut:
        """
        Confirm the code sent to ``dto.email``.

        Checks run in a fixed order: missing account, already verified,
        wrong code, expired code.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(dto.email)
            if user is None:
                raise NotFoundError("User", dto.email)
            if user.is_verified:
                raise AlreadyVerifiedError()
            if not user.verification_code or not secrets.compare_digest(
                user.verification_code.encode(), dto.code.encode()
            ):
                raise InvalidCodeError()
            expires_at = user.verification_code_expires_at
            if expires_at is None or is_expired(expires_at):
                raise CodeExpiredError()

            user.is_verified = True
            user.verification_code = None
            user.verification_code_expires_at = None
            uow.users.flush()
            log.info("auth.verification.confirmed", extra={"user_id": user.id})
        return MessageOut(message="Email verified successfully")

    # ------------------------------------------------------------------ #
    # Access token validation
    # ------------------------------------------------------------------ #

    @service_boundary
    def validate_access_token(self, claims: dict[str, Any]) -> ValidatedIdentity | None:
        """
        Resolve verified access-token claims to a live identity.

        Signature and expiry are checked by the JWT layer before this runs.

        :param claims: Decoded JWT payload.
        :returns: Identity, or ``None`` when the subject is malformed or the
            account no longer exists.
        """
        subject = claims.get("sub")
        if not isinstance(subject, str) or not (subject.isascii() and subject.isdigit()):
            return None
        sid = claims.get("sid")
        with self.ro_uow() as uow:
            user = uow.users.get(int(subject))
            if user is None:
                return None
            return ValidatedIdentity(
                user_id=user.id,
                login=user.login,
                email=user.email,
                role=user.role,
                session_id=sid if isinstance(sid, int) and not isinstance(sid, bool) else None,
            )


__all__ = ["AuthService"]
