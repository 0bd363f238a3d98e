"""Dashboard service - dashboards, their charts and per-user shares.

Every read and mutation goes through the sharing engine. A dashboard the
caller cannot see is reported as missing, never as forbidden.
"""

# flake8: noqa: E501

import logging
from typing import Any, Dict, List, Optional

from apps.api.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from apps.api.models.dataclasses import (
    ACCESS_EDIT,
    AccessDecision,
    CurrentUser,
    DashboardVisibility,
)
from apps.api.models.pydantic import (
    ChartConfig,
    CreateDashboardRequest,
    DashboardDTO,
    DashboardShareDTO,
    UpdateDashboardRequest,
)
from apps.api.services.dashboards.layout import normalize_layout
from apps.api.services.dashboards.series import series_query_for
from apps.api.services.sharing import SharingEngine

logger = logging.getLogger(__name__)


def _dump_chart(chart: ChartConfig) -> Dict[str, Any]:
    return chart.model_dump(mode="json", by_alias=True, exclude_none=True)


class DashboardService:
    """Service layer for dashboard operations."""

    def __init__(self, db, engine: Optional[SharingEngine] = None):
        self.db = db
        self.engine = engine or SharingEngine(db)

    # ---------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------

    def _dashboard_to_dict(self, row, decision: AccessDecision) -> Dict[str, Any]:
        charts = row.charts or []
        dto = DashboardDTO(
            id=row.id,
            title=row.title,
            description=row.description,
            charts=charts,
            group_ids=list(row.group_ids or []),
            is_public=DashboardVisibility.from_row(row).is_public,
            default_date_range=row.default_date_range,
            show_date_range_picker=row.show_date_range_picker is not False,
            layout=normalize_layout(row.layout, len(charts)),
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
            access_level=decision.access_level,
            can_edit=decision.can_edit,
        )
        return dto.model_dump(mode="json")

    def _share_to_dict(self, row) -> Dict[str, Any]:
        return DashboardShareDTO.from_pydal_row(row).model_dump(mode="json")

    def _visible_row(self, dashboard_id: int, viewer_id: Optional[int]):
        row = self.db.dashboards[dashboard_id]
        if not row:
            raise NotFoundError("Dashboard not found")
        decision = self.engine.visible_to(row, viewer_id)
        if not decision.visible:
            raise NotFoundError("Dashboard not found")
        return row, decision

    def _editable_row(self, dashboard_id: int, user: CurrentUser):
        row, decision = self._visible_row(dashboard_id, user.id)
        if not decision.can_edit:
            raise ForbiddenError("Edit access to this dashboard is required")
        return row, decision

    def _owner_row(self, dashboard_id: int, user: CurrentUser, action: str):
        """Visible row the caller created or holds an explicit edit share on.

        Group-derived edit access does not count here; it only reaches charts.
        """
        row, decision = self._visible_row(dashboard_id, user.id)
        if row.created_by != user.id:
            share = self.engine.share_for(dashboard_id, user.id)
            if not share or share.access_level != ACCESS_EDIT:
                raise ForbiddenError(f"Only the creator or an edit grantee can {action} this dashboard")
        return row, decision

    def _creator_row(self, dashboard_id: int, user: CurrentUser):
        row = self.db.dashboards[dashboard_id]
        if not row:
            raise NotFoundError("Dashboard not found")
        if row.created_by != user.id:
            raise ForbiddenError("Only the dashboard creator can manage shares")
        return row

    def _check_chart_refs(self, charts: List[ChartConfig], field: str = "charts") -> None:
        """Charts must point at an existing connection and one of its data sources."""
        details = []
        for index, chart in enumerate(charts):
            if not self.db.database_connections[chart.connection_id]:
                details.append(
                    {"field": f"{field}.{index}.connection_id", "message": "Unknown connection", "type": "value_error"}
                )
                continue
            data_source = self.db.data_sources[chart.table_id]
            if not data_source or data_source.connection_id != chart.connection_id:
                details.append(
                    {"field": f"{field}.{index}.table_id", "message": "Unknown data source for this connection", "type": "value_error"}
                )
        if details:
            raise InvalidInputError(details)

    def _check_groups(self, group_ids: List[int]) -> None:
        if not group_ids:
            return
        found = {
            row.id
            for row in self.db(self.db.user_groups.id.belongs(group_ids)).select(self.db.user_groups.id)
        }
        missing = [g for g in group_ids if g not in found]
        if missing:
            raise InvalidInputError.for_field(
                "group_ids", f"Unknown group ids: {', '.join(str(g) for g in missing)}"
            )

    def _save_charts(self, row, charts: List[Dict[str, Any]]) -> None:
        row.update_record(charts=charts, layout=normalize_layout(row.layout, len(charts)))
        self.db.commit()

    # ---------------------------------------------------------------
    # Dashboards
    # ---------------------------------------------------------------

    def list_dashboards(self, viewer_id: Optional[int]) -> List[Dict[str, Any]]:
        return [
            self._dashboard_to_dict(row, decision)
            for row, decision in self.engine.visible_dashboards(viewer_id)
        ]

    def get_dashboard(self, dashboard_id: int, viewer_id: Optional[int]) -> Dict[str, Any]:
        row, decision = self._visible_row(dashboard_id, viewer_id)
        return self._dashboard_to_dict(row, decision)

    def get_public_dashboard(self, dashboard_id: int) -> Dict[str, Any]:
        """Read a dashboard only if it is public, regardless of the caller."""
        row = self.db.dashboards[dashboard_id]
        if not row or not DashboardVisibility.from_row(row).is_public:
            raise NotFoundError("Dashboard not found")
        return self._dashboard_to_dict(row, self.engine.visible_to(row, None))

    def create_dashboard(self, payload: CreateDashboardRequest, user: CurrentUser) -> Dict[str, Any]:
        self._check_chart_refs(payload.charts)
        self._check_groups(payload.group_ids)

        layout = payload.layout.model_dump(exclude_none=True) if payload.layout else None
        dashboard_id = self.db.dashboards.insert(
            title=payload.title,
            description=payload.description,
            charts=[_dump_chart(chart) for chart in payload.charts],
            group_ids=payload.group_ids,
            is_public=bool(payload.is_public),
            access=None,
            default_date_range=payload.default_date_range,
            show_date_range_picker=payload.show_date_range_picker,
            layout=normalize_layout(layout, len(payload.charts)),
            created_by=user.id,
        )
        self.db.commit()
        logger.info("User %s created dashboard %s", user.id, dashboard_id)
        return self.get_dashboard(dashboard_id, user.id)

    def update_dashboard(self, dashboard_id: int, payload: UpdateDashboardRequest, user: CurrentUser) -> Dict[str, Any]:
        row, _ = self._owner_row(dashboard_id, user, "update")
        fields = payload.model_fields_set

        changes: Dict[str, Any] = {}
        for name in ("title", "description", "default_date_range"):
            if name in fields:
                changes[name] = getattr(payload, name)
        if payload.show_date_range_picker is not None:
            changes["show_date_range_picker"] = payload.show_date_range_picker
        if payload.is_public is not None:
            # Writing the current flag retires the legacy field
            changes["is_public"] = payload.is_public
            changes["access"] = None
        if payload.group_ids is not None:
            self._check_groups(payload.group_ids)
            changes["group_ids"] = payload.group_ids

        charts = row.charts or []
        if payload.charts is not None:
            self._check_chart_refs(payload.charts)
            charts = [_dump_chart(chart) for chart in payload.charts]
            changes["charts"] = charts
        if payload.layout is not None:
            changes["layout"] = normalize_layout(payload.layout.model_dump(exclude_none=True), len(charts))
        elif "charts" in changes:
            changes["layout"] = normalize_layout(row.layout, len(charts))

        if "title" in changes and not changes["title"]:
            raise InvalidInputError.for_field("title", "Title cannot be empty")

        if changes:
            row.update_record(**changes)
            self.db.commit()
            logger.info("User %s updated dashboard %s", user.id, dashboard_id)

        return self.get_dashboard(dashboard_id, user.id)

    def delete_dashboard(self, dashboard_id: int, user: CurrentUser) -> None:
        """
        Delete a dashboard and its shares.

        Allowed for the creator and for users holding an explicit edit share;
        group-derived edit access is not enough.
        """
        self._owner_row(dashboard_id, user, "delete")

        self.db(self.db.dashboard_shares.dashboard_id == dashboard_id).delete()
        self.db(self.db.dashboards.id == dashboard_id).delete()
        self.db.commit()
        logger.info("User %s deleted dashboard %s", user.id, dashboard_id)

    # ---------------------------------------------------------------
    # Charts
    # ---------------------------------------------------------------

    def add_chart(self, dashboard_id: int, chart: ChartConfig, user: CurrentUser) -> Dict[str, Any]:
        row, _ = self._editable_row(dashboard_id, user)
        charts = list(row.charts or [])
        if any(existing.get("id") == chart.id for existing in charts):
            raise InvalidInputError.for_field("id", "A chart with this id already exists")
        self._check_chart_refs([chart], field="chart")

        charts.append(_dump_chart(chart))
        self._save_charts(row, charts)
        return self.get_dashboard(dashboard_id, user.id)

    def replace_chart(self, dashboard_id: int, chart_id: str, chart: ChartConfig, user: CurrentUser) -> Dict[str, Any]:
        row, _ = self._editable_row(dashboard_id, user)
        charts = list(row.charts or [])
        index = next((i for i, existing in enumerate(charts) if existing.get("id") == chart_id), None)
        if index is None:
            raise NotFoundError("Chart not found")
        self._check_chart_refs([chart], field="chart")

        charts[index] = _dump_chart(chart.model_copy(update={"id": chart_id}))
        self._save_charts(row, charts)
        return self.get_dashboard(dashboard_id, user.id)

    def remove_chart(self, dashboard_id: int, chart_id: str, user: CurrentUser) -> Dict[str, Any]:
        row, _ = self._editable_row(dashboard_id, user)
        charts = [chart for chart in (row.charts or []) if chart.get("id") != chart_id]
        if len(charts) == len(row.charts or []):
            raise NotFoundError("Chart not found")
        self._save_charts(row, charts)
        return self.get_dashboard(dashboard_id, user.id)

    def get_chart_data(self, dashboard_id: int, chart_id: str, viewer_id: Optional[int], connections, window=None) -> Dict[str, Any]:
        """
        Read the series rows behind one chart.

        View access is enough. ``connections`` is the ConnectionService that
        runs (and caches) the query; ``window`` is an optional (start, end)
        pair replacing the chart's stored time range.

        Raises:
            NotFoundError: Dashboard invisible, or chart or data source missing
        """
        row, _ = self._visible_row(dashboard_id, viewer_id)
        stored = next((chart for chart in (row.charts or []) if chart.get("id") == chart_id), None)
        if stored is None:
            raise NotFoundError("Chart not found")

        chart = ChartConfig.model_validate(stored)
        data_source = self.db.data_sources[chart.table_id]
        if not data_source or data_source.connection_id != chart.connection_id:
            raise NotFoundError("Data source not found")

        rows = connections.fetch_series(chart.connection_id, series_query_for(chart, data_source, window))
        return {"chart_id": chart.id, "rows": rows}

    # ---------------------------------------------------------------
    # Shares
    # ---------------------------------------------------------------

    def share(self, dashboard_id: int, grantee_id: int, access_level: str, user: CurrentUser) -> Dict[str, Any]:
        """
        Grant (or change) a user's access to a dashboard.

        One share exists per (dashboard, user); re-sharing replaces the
        previous access level.

        Raises:
            NotFoundError: Dashboard or grantee does not exist
            ForbiddenError: Caller is not the dashboard creator
        """
        self._creator_row(dashboard_id, user)
        if not self.db.users[grantee_id]:
            raise NotFoundError("User not found")

        table = self.db.dashboard_shares
        existing = self.db(
            (table.dashboard_id == dashboard_id) & (table.user_id == grantee_id)
        ).select(orderby=table.id)

        if existing:
            share = existing.first()
            share.update_record(access_level=access_level)
            # Collapse duplicates left behind by older writers
            extra_ids = [row.id for row in existing if row.id != share.id]
            if extra_ids:
                self.db(table.id.belongs(extra_ids)).delete()
            share_id = share.id
        else:
            share_id = table.insert(
                dashboard_id=dashboard_id,
                user_id=grantee_id,
                access_level=access_level,
                created_by=user.id,
            )
        self.db.commit()
        logger.info("Dashboard %s shared with user %s (%s)", dashboard_id, grantee_id, access_level)
        return self._share_to_dict(table[share_id])

    def get_shares(self, dashboard_id: int, user: CurrentUser) -> List[Dict[str, Any]]:
        self._creator_row(dashboard_id, user)
        table = self.db.dashboard_shares
        rows = self.db(table.dashboard_id == dashboard_id).select(orderby=table.id)
        return [self._share_to_dict(row) for row in rows]

    def revoke_share(self, dashboard_id: int, grantee_id: int, user: CurrentUser) -> None:
        self._creator_row(dashboard_id, user)
        table = self.db.dashboard_shares
        deleted = self.db(
            (table.dashboard_id == dashboard_id) & (table.user_id == grantee_id)
        ).delete()
        if not deleted:
            raise NotFoundError("Share not found")
        self.db.commit()
        logger.info("Dashboard %s share for user %s revoked", dashboard_id, grantee_id)
