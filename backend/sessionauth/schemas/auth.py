"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from sessionauth.schemas.user import UserResponseSchema


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    login = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, validate=validate.Length(min=1, max=100))


class RefreshSchema(Schema):
    """Body of ``/auth/refresh`` and ``/auth/logout``."""

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1, max=512)
    )


class RevokeSessionsSchema(Schema):
    """Body of ``DELETE /auth/sessions``; defaults to the caller's own session."""

    current_token_id = fields.Integer(
        data_key="currentTokenId", load_default=None, strict=True, validate=validate.Range(min=1)
    )


class VerifyEmailSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=254))
    code = fields.String(required=True, validate=validate.Regexp(r"^[0-9]{6}$"))


class ResendVerificationSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=254))


class LoginResponseSchema(Schema):
    """``{accessToken, refreshToken, user}``."""

    access_token = fields.String(data_key="accessToken")
    refresh_token = fields.String(data_key="refreshToken")
    user = fields.Nested(UserResponseSchema)


class SessionResponseSchema(Schema):
    id = fields.Integer()
    ip_address = fields.String(data_key="ipAddress", allow_none=True)
    user_agent = fields.String(data_key="userAgent", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    expires_at = fields.DateTime(data_key="expiresAt")
