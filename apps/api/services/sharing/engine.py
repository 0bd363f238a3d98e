"""Dashboard sharing engine.

Computes whether a viewer can see a dashboard and with which access level.
Rules are evaluated in order and the first match wins:

1. the creator always gets ``edit``
2. public dashboards give ``view`` to anyone, anonymous included
3. an explicit share gives its own access level
4. membership in a listed group gives the highest role among those groups
5. otherwise the dashboard is invisible
"""

# flake8: noqa: E501


import logging
from typing import List, Optional, Tuple

from apps.api.models.dataclasses import (
    ACCESS_EDIT,
    ACCESS_VIEW,
    NO_ACCESS,
    AccessDecision,
    DashboardVisibility,
)
from apps.api.services.sharing.membership import GroupMembershipIndex

logger = logging.getLogger(__name__)


class SharingEngine:
    """Evaluates dashboard visibility for a viewer against live state."""

    def __init__(self, db, membership: Optional[GroupMembershipIndex] = None):
        self.db = db
        self.membership = membership or GroupMembershipIndex(db)

    def visible_to(self, dashboard, viewer_id: Optional[int]) -> AccessDecision:
        """
        Evaluate one dashboard for a viewer.

        Args:
            dashboard: Dashboard row
            viewer_id: Requesting user id, or None for anonymous

        Returns:
            AccessDecision
        """
        if viewer_id is not None and dashboard.created_by == viewer_id:
            return AccessDecision(visible=True, access_level=ACCESS_EDIT)

        visibility = DashboardVisibility.from_row(dashboard)
        if visibility.is_public:
            return AccessDecision(visible=True, access_level=ACCESS_VIEW)

        if viewer_id is None:
            return NO_ACCESS

        share = self.share_for(dashboard.id, viewer_id)
        if share:
            return AccessDecision(visible=True, access_level=share.access_level)

        group_role = self.membership.highest_role(visibility.group_ids, viewer_id)
        if group_role:
            return AccessDecision(visible=True, access_level=group_role)

        return NO_ACCESS

    def share_for(self, dashboard_id: int, user_id: int):
        """Return the explicit share of ``user_id`` on a dashboard, if any."""
        db = self.db
        return (
            db(
                (db.dashboard_shares.dashboard_id == dashboard_id)
                & (db.dashboard_shares.user_id == user_id)
            )
            .select(orderby=~db.dashboard_shares.id, limitby=(0, 1))
            .first()
        )

    def visible_dashboards(self, viewer_id: Optional[int]) -> List[Tuple[object, AccessDecision]]:
        """
        List every dashboard the viewer can see, with its access decision.

        Candidate rows are narrowed with a query, then every candidate goes
        through ``visible_to`` so listing and single reads share one code path.
        """
        db = self.db
        table = db.dashboards

        public_query = (table.is_public == True) | (  # noqa: E712
            (table.is_public == None) & (table.access == "public")  # noqa: E711
        )

        if viewer_id is None:
            candidates = db(public_query).select(orderby=~table.updated_at)
        else:
            shared_ids = [
                row.dashboard_id
                for row in db(db.dashboard_shares.user_id == viewer_id).select(
                    db.dashboard_shares.dashboard_id
                )
            ]
            query = public_query | (table.created_by == viewer_id)
            if shared_ids:
                query |= table.id.belongs(shared_ids)
            for group_id in self.membership.groups_of(viewer_id):
                query |= table.group_ids.contains(group_id)
            candidates = db(query).select(orderby=~table.updated_at)

        results = []
        for dashboard in candidates:
            decision = self.visible_to(dashboard, viewer_id)
            if decision.visible:
                results.append((dashboard, decision))

        logger.debug("Viewer %s sees %d dashboards", viewer_id, len(results))
        return results
