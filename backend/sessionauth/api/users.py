"""User registration and self-service profile endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from sessionauth.api.deps import (
    current_identity,
    json_body,
    json_response,
    no_content,
    require_auth,
    timing,
)
from sessionauth.schemas import (
    AvailabilityResponseSchema,
    CheckAvailabilitySchema,
    UserCreateSchema,
    UserFilterSchema,
    UserPageSchema,
    UserResponseSchema,
    UserUpdateSchema,
)
from sessionauth.services.users.dto import UserCreateIn, UserFilterIn, UserUpdateIn
from sessionauth.wiring import user_service

bp = Blueprint("users", __name__)

create_schema = UserCreateSchema()
update_schema = UserUpdateSchema()
filter_schema = UserFilterSchema()
availability_query_schema = CheckAvailabilitySchema()
user_schema = UserResponseSchema()
page_schema = UserPageSchema()
availability_schema = AvailabilityResponseSchema()


@bp.post("/register")
@timing
def register():
    """Create an account. A verification code is mailed when required."""

    data = create_schema.load(json_body())
    user = user_service().register(UserCreateIn(**data))
    return json_response(user_schema.dump(user), status=201)


@bp.get("")
@require_auth
@timing
def list_users():
    """Paginated listing of live accounts with an optional login filter."""

    data = filter_schema.load(request.args)
    page = user_service().list_users(
        UserFilterIn(login_filter=data["login_filter"], page=data["page"], limit=data["limit"])
    )
    return json_response(page_schema.dump(page))


@bp.get("/check-availability")
@timing
def check_availability():
    data = availability_query_schema.load(request.args)
    result = user_service().check_availability(login=data["login"], email=data["email"])
    return json_response(availability_schema.dump(result))


@bp.get("/profile/my")
@require_auth
@timing
def get_my_profile():
    user = user_service().get_profile(current_identity().user_id)
    return json_response(user_schema.dump(user))


@bp.patch("/profile/my")
@require_auth
@timing
def update_my_profile():
    """Partial update; changing the password revokes every session."""

    data = update_schema.load(json_body())
    user = user_service().update_profile(current_identity().user_id, UserUpdateIn(fields=data))
    return json_response(user_schema.dump(user))


@bp.delete("/profile/my")
@require_auth
@timing
def delete_my_profile():
    user_service().delete_profile(current_identity().user_id)
    return no_content()
