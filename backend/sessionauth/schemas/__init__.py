"""Marshmallow schemas for request validation and response rendering."""

from sessionauth.schemas.auth import (
    LoginResponseSchema,
    LoginSchema,
    RefreshSchema,
    ResendVerificationSchema,
    RevokeSessionsSchema,
    SessionResponseSchema,
    VerifyEmailSchema,
)
from sessionauth.schemas.common import MessageSchema, PaginationQuerySchema
from sessionauth.schemas.user import (
    AvailabilityResponseSchema,
    CheckAvailabilitySchema,
    UserCreateSchema,
    UserFilterSchema,
    UserPageSchema,
    UserResponseSchema,
    UserUpdateSchema,
)

__all__ = [
    "AvailabilityResponseSchema",
    "CheckAvailabilitySchema",
    "LoginResponseSchema",
    "LoginSchema",
    "MessageSchema",
    "PaginationQuerySchema",
    "RefreshSchema",
    "ResendVerificationSchema",
    "RevokeSessionsSchema",
    "SessionResponseSchema",
    "UserCreateSchema",
    "UserFilterSchema",
    "UserPageSchema",
    "UserResponseSchema",
    "UserUpdateSchema",
    "VerifyEmailSchema",
]
