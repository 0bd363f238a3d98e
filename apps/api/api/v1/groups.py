"""User group endpoints.

Groups are visible to and mutable by their owner only.
"""

# flake8: noqa: E501


from flask import Blueprint, current_app, g

from apps.api.auth.decorators import login_required
from apps.api.models.pydantic import GroupRequest
from apps.api.services.groups import GroupService
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import parse_request

bp = Blueprint("groups", __name__)


def get_service():
    """Get GroupService instance."""
    return GroupService(current_app.db)


@bp.route("", methods=["GET"])
@login_required
def list_groups():
    """List groups owned by the caller."""
    return ApiResponse.success(get_service().list_groups(g.current_user.id))


@bp.route("", methods=["POST"])
@login_required
def create_group():
    """
    Create a group owned by the caller.

    Request Body:
        {
            "name": "string",
            "description": "string",
            "role": "view|edit",
            "member_ids": [1, 2]
        }

    Returns:
        201: Group created
        400: Validation error
    """
    payload, error = parse_request(GroupRequest)
    if error:
        return error

    return ApiResponse.created(get_service().create_group(payload, g.current_user.id))


@bp.route("/<int:group_id>", methods=["GET"])
@login_required
def get_group(group_id):
    """
    Get one of the caller's groups.

    Returns:
        200: Group
        404: Group not found or not owned by the caller
    """
    return ApiResponse.success(get_service().get_group(group_id, g.current_user.id))


@bp.route("/<int:group_id>", methods=["PUT"])
@login_required
def update_group(group_id):
    """
    Replace a group's name, description, role and members (owner only).

    Returns:
        200: Updated group
        400: Validation error
        404: Group not found or not owned by the caller
    """
    payload, error = parse_request(GroupRequest)
    if error:
        return error

    return ApiResponse.success(get_service().update_group(group_id, payload, g.current_user.id))


@bp.route("/<int:group_id>", methods=["DELETE"])
@login_required
def delete_group(group_id):
    """
    Delete a group (owner only).

    Returns:
        204: Deleted
        404: Group not found or not owned by the caller
    """
    get_service().delete_group(group_id, g.current_user.id)
    return ApiResponse.no_content()
