"""
Pydantic 2 models for database connection endpoints.

Passwords are accepted on create/update and never part of a DTO.
"""

# flake8: noqa: E501


from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import ImmutableModel, RequestModel

DatabaseType = Literal["postgresql", "clickhouse"]


class CreateConnectionRequest(RequestModel):
    """Request model for registering an external database."""

    name: str = Field(..., min_length=1, max_length=255)
    type: DatabaseType
    host: str = Field(..., min_length=1, max_length=255)
    port: int = Field(..., gt=0, le=65535)
    database: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    active: bool = True


class UpdateConnectionRequest(RequestModel):
    """Request model for updating a connection. All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[DatabaseType] = None
    host: Optional[str] = Field(None, min_length=1, max_length=255)
    port: Optional[int] = Field(None, gt=0, le=65535)
    database: Optional[str] = Field(None, min_length=1, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=1)
    active: Optional[bool] = None


class ConnectionDTO(ImmutableModel):
    """Immutable connection data transfer object (no password)."""

    id: int
    name: str
    type: DatabaseType
    host: str
    port: int
    database: str
    username: str
    active: bool
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_pydal_row(cls, row, **overrides):
        return cls(
            id=row.id,
            name=row.name,
            type=row.db_type,
            host=row.host,
            port=row.port,
            database=row.database_name,
            username=row.username,
            active=bool(row.active),
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **overrides,
        )
