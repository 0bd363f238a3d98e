"""
Pydantic 2 models for user group endpoints.
"""

# flake8: noqa: E501


from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .base import ImmutableModel, RequestModel

GroupRole = Literal["view", "edit"]


class GroupRequest(RequestModel):
    """Request model for creating or replacing a group."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    role: GroupRole = "view"
    member_ids: List[int] = []

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("member_ids")
    @classmethod
    def dedupe_members(cls, v: List[int]) -> List[int]:
        return list(dict.fromkeys(v))


class GroupDTO(ImmutableModel):
    """Immutable group data transfer object."""

    id: int
    name: str
    description: str
    role: GroupRole
    member_ids: List[int] = []
    owner: int
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("member_ids", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []
