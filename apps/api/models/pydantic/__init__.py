"""
Pydantic 2 models for SeriesBoard request validation and serialization.

Request models validate inbound JSON; DTOs are immutable views of stored
rows with secrets removed.
"""

# flake8: noqa: E501


from .base import ImmutableModel, RequestModel
from .connection import (
    ConnectionDTO,
    CreateConnectionRequest,
    DatabaseType,
    UpdateConnectionRequest,
)
from .dashboard import (
    AccessLevel,
    ChartConfig,
    ChartDataQuery,
    CreateDashboardRequest,
    DashboardDTO,
    DashboardLayout,
    DashboardShareDTO,
    ShareDashboardRequest,
    UpdateDashboardRequest,
)
from .data_source import (
    ColumnMetadata,
    CreateDataSourcesRequest,
    DataSourceDTO,
    TableSelection,
    UpdateDataSourceRequest,
)
from .group import GroupDTO, GroupRequest, GroupRole
from .user import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    RosterEntryDTO,
    UpdateProfileRequest,
    UpdateRolesRequest,
    UserDTO,
    UserRole,
    UserRolesDTO,
)

__all__ = [
    "AccessLevel",
    "ChangePasswordRequest",
    "ChartConfig",
    "ChartDataQuery",
    "ColumnMetadata",
    "ConnectionDTO",
    "CreateConnectionRequest",
    "CreateDashboardRequest",
    "CreateDataSourcesRequest",
    "DashboardDTO",
    "DashboardLayout",
    "DashboardShareDTO",
    "DataSourceDTO",
    "DatabaseType",
    "GroupDTO",
    "GroupRequest",
    "GroupRole",
    "ImmutableModel",
    "LoginRequest",
    "RegisterRequest",
    "RequestModel",
    "RosterEntryDTO",
    "ShareDashboardRequest",
    "TableSelection",
    "UpdateConnectionRequest",
    "UpdateDashboardRequest",
    "UpdateDataSourceRequest",
    "UpdateProfileRequest",
    "UpdateRolesRequest",
    "UserDTO",
    "UserRole",
    "UserRolesDTO",
]
