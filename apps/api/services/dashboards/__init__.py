"""Dashboard service package."""

from apps.api.services.dashboards.layout import normalize_layout
from apps.api.services.dashboards.series import series_query_for
from apps.api.services.dashboards.service import DashboardService

__all__ = ["DashboardService", "normalize_layout", "series_query_for"]
