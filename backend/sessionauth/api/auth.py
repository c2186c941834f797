"""Authentication and session management endpoints."""

from __future__ import annotations

from flask import Blueprint

from sessionauth.api.deps import (
    current_identity,
    json_body,
    json_response,
    no_content,
    require_auth,
    timing,
)
from sessionauth.core.errors import BadRequest
from sessionauth.core.proxy import client_context
from sessionauth.schemas import (
    LoginResponseSchema,
    LoginSchema,
    MessageSchema,
    RefreshSchema,
    ResendVerificationSchema,
    RevokeSessionsSchema,
    SessionResponseSchema,
    VerifyEmailSchema,
)
from sessionauth.services.auth.dto import LoginIn, RefreshIn, VerifyEmailIn
from sessionauth.wiring import auth_service

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
refresh_schema = RefreshSchema()
revoke_sessions_schema = RevokeSessionsSchema()
verify_email_schema = VerifyEmailSchema()
resend_schema = ResendVerificationSchema()
login_response_schema = LoginResponseSchema()
sessions_schema = SessionResponseSchema(many=True)
message_schema = MessageSchema()


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access/refresh pair."""

    data = login_schema.load(json_body())
    pair = auth_service().login(LoginIn(**data), client_context())
    return json_response(login_response_schema.dump(pair))


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token; the presented token stops working."""

    data = refresh_schema.load(json_body())
    pair = auth_service().refresh(RefreshIn(**data), client_context())
    return json_response(login_response_schema.dump(pair))


@bp.post("/logout")
@timing
def logout():
    data = refresh_schema.load(json_body())
    auth_service().logout(RefreshIn(**data))
    return no_content()


@bp.get("/sessions")
@require_auth
@timing
def list_sessions():
    """Active sessions of the caller, newest first."""

    sessions = auth_service().list_sessions(current_identity().user_id)
    return json_response(sessions_schema.dump(sessions))


@bp.delete("/sessions/<int:session_id>")
@require_auth
@timing
def revoke_session(session_id: int):
    auth_service().revoke_session(current_identity().user_id, session_id)
    return json_response(message_schema.dump({"message": "Session revoked"}))


@bp.delete("/sessions")
@require_auth
@timing
def revoke_other_sessions():
    """
    Revoke every session of the caller except ``currentTokenId``.

    ``currentTokenId`` defaults to the session the access token was issued for.
    """

    data = revoke_sessions_schema.load(json_body())
    identity = current_identity()
    keep_id = data.get("current_token_id") or identity.session_id
    if keep_id is None:
        raise BadRequest("currentTokenId is required", code="validation_error")
    revoked = auth_service().revoke_all_sessions_except_current(identity.user_id, keep_id)
    return json_response(message_schema.dump({"message": f"Revoked {revoked} other session(s)"}))


@bp.post("/verify-email")
@timing
def verify_email():
    data = verify_email_schema.load(json_body())
    result = auth_service().verify_email(VerifyEmailIn(**data))
    return json_response(message_schema.dump(result))


@bp.post("/resend-verification")
@timing
def resend_verification():
    """Mail a fresh verification code to an unverified account."""

    data = resend_schema.load(json_body())
    result = auth_service().request_email_verification(data["email"])
    return json_response(message_schema.dump(result))


__all__ = ["bp"]
