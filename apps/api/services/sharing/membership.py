"""Group membership index.

A read-through view over ``user_groups.member_ids``. Nothing is cached, so a
membership change is visible to the very next sharing evaluation.
"""

# flake8: noqa: E501


from typing import Iterable, Optional, Set

from apps.api.models.dataclasses import ACCESS_RANK


class GroupMembershipIndex:
    """Answers membership questions from the live group rows."""

    def __init__(self, db):
        self.db = db

    def is_member(self, group_id: int, user_id: Optional[int]) -> bool:
        if user_id is None:
            return False
        group = self.db.user_groups[group_id]
        if not group:
            return False
        return int(user_id) in set(group.member_ids or [])

    def groups_of(self, user_id: Optional[int]) -> Set[int]:
        if user_id is None:
            return set()
        db = self.db
        rows = db(db.user_groups.member_ids.contains(int(user_id))).select(
            db.user_groups.id, db.user_groups.member_ids
        )
        # contains() is a LIKE match on some backends; confirm exact membership
        return {row.id for row in rows if int(user_id) in set(row.member_ids or [])}

    def highest_role(self, group_ids: Iterable[int], user_id: Optional[int]) -> Optional[str]:
        """
        Highest access level conferred on ``user_id`` by any of ``group_ids``.

        Returns:
            "edit", "view", or None when the user belongs to none of them
        """
        group_ids = [int(g) for g in group_ids or ()]
        if user_id is None or not group_ids:
            return None

        db = self.db
        rows = db(db.user_groups.id.belongs(group_ids)).select(
            db.user_groups.id, db.user_groups.role, db.user_groups.member_ids
        )

        best = None
        for row in rows:
            if int(user_id) not in set(row.member_ids or []):
                continue
            role = row.role or "view"
            if best is None or ACCESS_RANK[role] > ACCESS_RANK[best]:
                best = role
        return best
