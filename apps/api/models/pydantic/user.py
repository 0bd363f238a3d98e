"""
Pydantic 2 models for users, registration and profile endpoints.
"""

# flake8: noqa: E501


from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .base import ImmutableModel, RequestModel

# ==================== Type Definitions ====================

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

UserRole = Literal["db_admin", "metadata_editor", "dashboard_creator", "user_admin", "public"]


# ==================== Request Models ====================


class RegisterRequest(RequestModel):
    """Request model for self-registration."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)

    @field_validator("first_name", "last_name", "middle_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(RequestModel):
    """Request model for credential login."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class UpdateProfileRequest(RequestModel):
    """Request model for updating the caller's own profile."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    organization: Optional[str] = Field(None, max_length=200)
    department: Optional[str] = Field(None, max_length=200)

    @field_validator(
        "first_name", "last_name", "middle_name", "organization", "department", mode="before"
    )
    @classmethod
    def strip_fields(cls, v):
        return v.strip() if isinstance(v, str) else v


class ChangePasswordRequest(RequestModel):
    """Request model for changing the caller's own password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=255)


class UpdateRolesRequest(RequestModel):
    """Request model for replacing a user's role set.

    Duplicate roles are collapsed while keeping first-seen order.
    """

    id: int = Field(..., ge=1)
    roles: List[UserRole]

    @field_validator("roles")
    @classmethod
    def dedupe_roles(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


# ==================== DTOs ====================


class RosterEntryDTO(ImmutableModel):
    """User roster entry visible to any authenticated user."""

    id: int
    email: str
    first_name: str
    last_name: str
    middle_name: Optional[str] = None


class UserRolesDTO(RosterEntryDTO):
    """Roster entry including roles, for user administrators."""

    roles: List[str] = []


class UserDTO(ImmutableModel):
    """Full user profile. Excludes password_hash."""

    id: int
    email: str
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    organization: Optional[str] = None
    department: Optional[str] = None
    roles: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
