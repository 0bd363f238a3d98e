"""Dashboard, chart and share endpoints.

Listing and reading are open to anonymous callers; the sharing engine
decides what each viewer sees. Invisible dashboards answer 404.
"""

# flake8: noqa: E501


from flask import Blueprint, current_app, g

from apps.api.auth.decorators import login_required, optional_auth, role_required
from apps.api.models.pydantic import (
    ChartConfig,
    ChartDataQuery,
    CreateDashboardRequest,
    ShareDashboardRequest,
    UpdateDashboardRequest,
)
from apps.api.services.connections import ConnectionService
from apps.api.services.dashboards import DashboardService
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import parse_query_args, parse_request
from shared.utils.crypto import SecretBox

bp = Blueprint("dashboards", __name__)


def get_service():
    """Get DashboardService instance."""
    return DashboardService(current_app.db)


def get_connection_service():
    """Get the ConnectionService that runs chart queries."""
    return ConnectionService(
        current_app.db,
        secret_box=SecretBox.from_config(current_app.config),
        cache=current_app.extensions.get("content_cache"),
        driver_timeout=current_app.config.get("DRIVER_TIMEOUT", 10.0),
    )


def _viewer_id():
    user = g.get("current_user")
    return user.id if user else None


# ===========================
# Dashboards
# ===========================


@bp.route("", methods=["GET"])
@optional_auth
def list_dashboards():
    """
    List dashboards visible to the caller.

    Anonymous callers only see public dashboards. Each entry carries the
    caller's ``access_level`` and ``can_edit``.
    """
    return ApiResponse.success(get_service().list_dashboards(_viewer_id()))


@bp.route("", methods=["POST"])
@role_required("dashboard_creator")
def create_dashboard():
    """
    Create a dashboard.

    Request Body:
        {
            "title": "string",
            "description": "string" (optional),
            "charts": [ChartConfig] (optional),
            "group_ids": [1, 2] (optional),
            "is_public": false (optional; legacy "access" also accepted),
            "default_date_range": "last_24_hours" (optional),
            "show_date_range_picker": true (optional),
            "layout": {"charts_per_row": 2} (optional)
        }

    Returns:
        201: Dashboard created
        400: Validation error
        403: Caller is not a dashboard_creator
    """
    payload, error = parse_request(CreateDashboardRequest)
    if error:
        return error

    return ApiResponse.created(get_service().create_dashboard(payload, g.current_user))


@bp.route("/<int:dashboard_id>", methods=["GET"])
@optional_auth
def get_dashboard(dashboard_id):
    """
    Get one dashboard if the caller can see it.

    Returns:
        200: Dashboard
        404: Dashboard not found or not visible
    """
    return ApiResponse.success(get_service().get_dashboard(dashboard_id, _viewer_id()))


@bp.route("/<int:dashboard_id>", methods=["PUT"])
@login_required
def update_dashboard(dashboard_id):
    """
    Update a dashboard (creator or explicit edit grantee).

    Group-derived edit access covers charts only, not dashboard settings.

    Returns:
        200: Updated dashboard
        400: Validation error
        403: Caller is neither the creator nor an edit grantee
        404: Dashboard not found or not visible
    """
    payload, error = parse_request(UpdateDashboardRequest)
    if error:
        return error

    return ApiResponse.success(get_service().update_dashboard(dashboard_id, payload, g.current_user))


@bp.route("/<int:dashboard_id>", methods=["DELETE"])
@login_required
def delete_dashboard(dashboard_id):
    """
    Delete a dashboard and its shares (creator or explicit edit grantee).

    Returns:
        204: Deleted
        403: Not allowed to delete
        404: Dashboard not found or not visible
    """
    get_service().delete_dashboard(dashboard_id, g.current_user)
    return ApiResponse.no_content()


# ===========================
# Charts
# ===========================


@bp.route("/<int:dashboard_id>/charts", methods=["POST"])
@login_required
def add_chart(dashboard_id):
    """Append a chart to a dashboard (edit access required)."""
    chart, error = parse_request(ChartConfig)
    if error:
        return error

    return ApiResponse.created(get_service().add_chart(dashboard_id, chart, g.current_user))


@bp.route("/<int:dashboard_id>/charts/<chart_id>", methods=["PUT"])
@login_required
def replace_chart(dashboard_id, chart_id):
    """Replace one chart of a dashboard (edit access required)."""
    chart, error = parse_request(ChartConfig)
    if error:
        return error

    return ApiResponse.success(get_service().replace_chart(dashboard_id, chart_id, chart, g.current_user))


@bp.route("/<int:dashboard_id>/charts/<chart_id>/data", methods=["GET"])
@optional_auth
def get_chart_data(dashboard_id, chart_id):
    """
    Read the series rows behind a chart (view access or better).

    Query Parameters:
        - from: ISO timestamp (optional, requires to)
        - to: ISO timestamp (optional, requires from)

    Returns:
        200: {"chart_id": "...", "rows": [{"x": ..., "y": ..., "series": ...}]}
        400: Invalid time window
        404: Dashboard not visible, or chart or data source missing
    """
    window, error = parse_query_args(ChartDataQuery)
    if error:
        return error

    bounds = (window.start, window.end) if window.start is not None else None
    data = get_service().get_chart_data(dashboard_id, chart_id, _viewer_id(), get_connection_service(), bounds)
    return ApiResponse.success(data)


@bp.route("/<int:dashboard_id>/charts/<chart_id>", methods=["DELETE"])
@login_required
def remove_chart(dashboard_id, chart_id):
    """Remove one chart from a dashboard (edit access required)."""
    return ApiResponse.success(get_service().remove_chart(dashboard_id, chart_id, g.current_user))


# ===========================
# Shares
# ===========================


@bp.route("/<int:dashboard_id>/share", methods=["POST"])
@role_required("dashboard_creator")
def share_dashboard(dashboard_id):
    """
    Grant a user access to a dashboard (creator only).

    Sharing again with the same user replaces the previous access level.

    Request Body:
        {"user_id": 7, "access_level": "view|edit"}

    Returns:
        201: Share
        400: Validation error
        403: Caller is not the dashboard creator
        404: Dashboard or user not found
    """
    payload, error = parse_request(ShareDashboardRequest)
    if error:
        return error

    share = get_service().share(dashboard_id, payload.user_id, payload.access_level, g.current_user)
    return ApiResponse.created(share)


@bp.route("/<int:dashboard_id>/share", methods=["GET"])
@role_required("dashboard_creator")
def list_shares(dashboard_id):
    """List a dashboard's shares (creator only)."""
    return ApiResponse.success(get_service().get_shares(dashboard_id, g.current_user))


@bp.route("/<int:dashboard_id>/share/<int:user_id>", methods=["DELETE"])
@role_required("dashboard_creator")
def revoke_share(dashboard_id, user_id):
    """Revoke a user's share (creator only)."""
    get_service().revoke_share(dashboard_id, user_id, g.current_user)
    return ApiResponse.no_content()
