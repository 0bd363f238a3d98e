"""User roster and role administration endpoints."""

# flake8: noqa: E501


from flask import Blueprint, current_app

from apps.api.auth.decorators import login_required, role_required
from apps.api.models.pydantic import UpdateRolesRequest
from apps.api.services.users import UserService
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import parse_request

bp = Blueprint("users", __name__)


def get_service():
    """Get UserService instance."""
    return UserService(current_app.db)


@bp.route("", methods=["GET"])
@login_required
def list_users():
    """
    List the user roster (any authenticated user).

    Returns:
        200: [{"id", "email", "first_name", "last_name", "middle_name"}]
    """
    return ApiResponse.success(get_service().list_roster())


@bp.route("/roles", methods=["GET"])
@role_required("user_admin")
def list_user_roles():
    """
    List users with their roles (user_admin only).

    Returns:
        200: Roster entries including "roles"
        403: Caller is not a user_admin
    """
    return ApiResponse.success(get_service().list_with_roles())


@bp.route("/roles", methods=["PUT"])
@role_required("user_admin")
def update_user_roles():
    """
    Replace a user's roles (user_admin only).

    Request Body:
        {"id": 12, "roles": ["db_admin", "dashboard_creator"]}

    Returns:
        200: {"id": 12, "roles": [...]}
        400: Validation error
        404: User not found
    """
    payload, error = parse_request(UpdateRolesRequest)
    if error:
        return error

    return ApiResponse.success(get_service().update_roles(payload.id, payload.roles))
