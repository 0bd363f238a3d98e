"""Own-profile endpoints. The target is always the caller."""

# flake8: noqa: E501


from flask import Blueprint, current_app, g

from apps.api.auth.decorators import login_required
from apps.api.models.pydantic import ChangePasswordRequest, UpdateProfileRequest
from apps.api.services.users import UserService
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import parse_request

bp = Blueprint("profile", __name__)


def get_service():
    """Get UserService instance."""
    return UserService(current_app.db)


@bp.route("", methods=["GET"])
@login_required
def get_profile():
    """Get the caller's profile."""
    return ApiResponse.success(get_service().get_user(g.current_user.id))


@bp.route("", methods=["PUT"])
@login_required
def update_profile():
    """
    Update the caller's profile.

    Request Body:
        {
            "first_name": "string" (1-100),
            "last_name": "string" (1-100),
            "middle_name": "string" (optional, max 100),
            "organization": "string" (optional, max 200),
            "department": "string" (optional, max 200)
        }

    Returns:
        200: Updated profile
        400: Validation error
    """
    payload, error = parse_request(UpdateProfileRequest)
    if error:
        return error

    return ApiResponse.success(get_service().update_profile(g.current_user.id, payload))


@bp.route("/password", methods=["PUT"])
@login_required
def change_password():
    """
    Change the caller's password.

    Request Body:
        {"current_password": "string", "new_password": "string" (min 6)}

    Returns:
        200: {"ok": true}
        400: Validation error or current password is incorrect
    """
    payload, error = parse_request(ChangePasswordRequest)
    if error:
        return error

    get_service().change_password(g.current_user.id, payload.current_password, payload.new_password)
    return ApiResponse.success({"ok": True})
