"""User resource schemas (camelCase wire format)."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates_schema

from sessionauth.schemas.common import PaginationQuerySchema


class UserCreateSchema(Schema):
    """Registration payload."""

    login = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=6, max=100))
    age = fields.Integer(required=True, strict=True, validate=validate.Range(min=0, max=150))
    description = fields.String(
        load_default=None, allow_none=True, validate=validate.Length(max=1000)
    )


class UserUpdateSchema(Schema):
    """Partial profile update; every field optional, at least one required."""

    login = fields.String(validate=validate.Length(min=3, max=50))
    email = fields.Email(validate=validate.Length(max=254))
    password = fields.String(validate=validate.Length(min=6, max=100))
    age = fields.Integer(strict=True, validate=validate.Range(min=0, max=150))
    description = fields.String(allow_none=True, validate=validate.Length(max=1000))

    @validates_schema
    def _not_empty(self, data: dict[str, Any], **_: Any) -> None:
        if not data:
            raise ValidationError("At least one field must be provided.")


class UserFilterSchema(PaginationQuerySchema):
    """Query parameters for listing users."""

    login_filter = fields.String(
        data_key="loginFilter", load_default=None, validate=validate.Length(max=50)
    )


class CheckAvailabilitySchema(Schema):
    """Query parameters for ``/users/check-availability``."""

    class Meta:
        unknown = EXCLUDE

    login = fields.String(load_default=None)
    email = fields.String(load_default=None)

    @validates_schema
    def _one_of(self, data: dict[str, Any], **_: Any) -> None:
        if not data.get("login") and not data.get("email"):
            raise ValidationError("Provide login and/or email.")


class UserResponseSchema(Schema):
    """Public representation of a user. Credentials and codes are never emitted."""

    id = fields.Integer(required=True)
    login = fields.String(required=True)
    email = fields.String(required=True)
    age = fields.Integer(required=True)
    description = fields.String(allow_none=True)
    is_verified = fields.Boolean(data_key="isVerified")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class UserPageSchema(Schema):
    """``{data, total, page, limit, totalPages}`` envelope for user listings."""

    data = fields.List(fields.Nested(UserResponseSchema))
    total = fields.Integer()
    page = fields.Integer()
    limit = fields.Integer()
    total_pages = fields.Integer(data_key="totalPages")


class AvailabilityResponseSchema(Schema):
    login_exists = fields.Boolean(data_key="loginExists")
    email_exists = fields.Boolean(data_key="emailExists")
