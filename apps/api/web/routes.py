"""Web routes for SeriesBoard (public dashboard links)."""

# flake8: noqa: E501


from flask import Blueprint, current_app, redirect, url_for

from apps.api.exceptions import NotFoundError
from apps.api.services.dashboards import DashboardService
from apps.api.utils.api_responses import ApiResponse

bp = Blueprint("web", __name__)


@bp.route("/")
def index():
    """Home - send visitors to the dashboard listing."""
    return redirect(url_for("dashboards.list_dashboards"))


@bp.route("/dashboards/<int:dashboard_id>/public")
def public_dashboard(dashboard_id):
    """
    Shareable read-only link for a public dashboard.

    Re-checks the public flag itself rather than relying on the sharing
    engine; non-public or missing dashboards redirect home.
    """
    service = DashboardService(current_app.db)
    try:
        dashboard = service.get_public_dashboard(dashboard_id)
    except NotFoundError:
        return redirect(url_for("web.index"))
    return ApiResponse.success(dashboard)
