"""Group service - owner-scoped CRUD for user groups."""

# flake8: noqa: E501

import logging
from typing import Any, Dict, List

from apps.api.auth.policy import can_mutate
from apps.api.exceptions import InvalidInputError, NotFoundError
from apps.api.models.pydantic import GroupDTO, GroupRequest

logger = logging.getLogger(__name__)


class GroupService:
    """Service layer for group operations.

    Only the owner can read or change a group. Everyone else gets NotFound
    so that foreign groups are indistinguishable from missing ones.
    """

    def __init__(self, db):
        self.db = db

    def _group_to_dict(self, row) -> Dict[str, Any]:
        return GroupDTO.from_pydal_row(row).model_dump(mode="json")

    def _owned_row(self, group_id: int, user_id: int):
        group = self.db.user_groups[group_id]
        if not group or not can_mutate("group", group, user_id, ()):
            raise NotFoundError("Group not found")
        return group

    def _check_members(self, member_ids: List[int]) -> None:
        if not member_ids:
            return
        found = {
            row.id
            for row in self.db(self.db.users.id.belongs(member_ids)).select(self.db.users.id)
        }
        missing = [m for m in member_ids if m not in found]
        if missing:
            raise InvalidInputError.for_field(
                "member_ids", f"Unknown user ids: {', '.join(str(m) for m in missing)}"
            )

    def list_groups(self, user_id: int) -> List[Dict[str, Any]]:
        rows = self.db(self.db.user_groups.owner == user_id).select(
            orderby=self.db.user_groups.name
        )
        return [self._group_to_dict(row) for row in rows]

    def get_group(self, group_id: int, user_id: int) -> Dict[str, Any]:
        return self._group_to_dict(self._owned_row(group_id, user_id))

    def create_group(self, payload: GroupRequest, user_id: int) -> Dict[str, Any]:
        self._check_members(payload.member_ids)
        group_id = self.db.user_groups.insert(
            name=payload.name,
            description=payload.description,
            role=payload.role,
            member_ids=payload.member_ids,
            owner=user_id,
            created_by=user_id,
        )
        self.db.commit()
        logger.info("User %s created group %s", user_id, group_id)
        return self._group_to_dict(self.db.user_groups[group_id])

    def update_group(self, group_id: int, payload: GroupRequest, user_id: int) -> Dict[str, Any]:
        group = self._owned_row(group_id, user_id)
        self._check_members(payload.member_ids)
        group.update_record(
            name=payload.name,
            description=payload.description,
            role=payload.role,
            member_ids=payload.member_ids,
        )
        self.db.commit()
        return self._group_to_dict(self.db.user_groups[group_id])

    def delete_group(self, group_id: int, user_id: int) -> None:
        self._owned_row(group_id, user_id)
        self.db(self.db.user_groups.id == group_id).delete()
        self.db.commit()
        logger.info("User %s deleted group %s", user_id, group_id)
