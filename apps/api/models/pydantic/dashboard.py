"""
Pydantic 2 models for dashboards, charts and dashboard shares.
"""

# flake8: noqa: E501


import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from .base import ImmutableModel, RequestModel

# ==================== Type Definitions ====================

ChartType = Literal["line", "bar", "scatter"]
AccessLevel = Literal["view", "edit"]
LegacyDashboardAccess = Literal["public", "private", "shared"]
LegacyLayoutType = Literal["row", "column", "grid"]
FilterOperator = Literal["eq", "gt", "lt", "gte", "lte", "in"]
AggregationType = Literal["avg", "sum", "min", "max", "count"]
TimeBucket = Literal["minute", "hour", "day", "week", "month"]


# ==================== Chart Models ====================


class TimeRange(RequestModel):
    """Absolute time window applied to a chart."""

    start: datetime = Field(..., validation_alias="from", serialization_alias="from")
    end: datetime = Field(..., validation_alias="to", serialization_alias="to")


class ValueFilter(RequestModel):
    """Column predicate applied to a chart query."""

    column: str = Field(..., min_length=1)
    operator: FilterOperator
    value: Any = None


class ChartFilters(RequestModel):
    time_range: Optional[TimeRange] = None
    value_filters: Optional[List[ValueFilter]] = None


class ChartAggregation(RequestModel):
    type: AggregationType
    column: str = Field(..., min_length=1)
    group_by: Optional[TimeBucket] = None


class ChartPosition(RequestModel):
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)


class ChartConfig(RequestModel):
    """A chart bound to a data source of a connection."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, min_length=1)
    type: ChartType
    title: str = Field(..., min_length=1, max_length=200)
    connection_id: int = Field(..., ge=1)
    table_id: int = Field(..., ge=1)
    x_axis: str = Field(..., min_length=1)
    y_axis: str = Field(..., min_length=1)
    group_by: Optional[str] = None
    filters: Optional[ChartFilters] = None
    aggregation: Optional[ChartAggregation] = None
    position: ChartPosition


def _ensure_unique_chart_ids(charts: Optional[List[ChartConfig]]):
    if charts is None:
        return charts
    ids = [chart.id for chart in charts]
    if len(ids) != len(set(ids)):
        raise ValueError("Chart ids must be unique within a dashboard")
    return charts


# ==================== Dashboard Models ====================


class DashboardLayout(RequestModel):
    """Layout input: current charts_per_row form or legacy type form."""

    charts_per_row: Optional[int] = Field(None, ge=1)
    type: Optional[LegacyLayoutType] = None


class CreateDashboardRequest(RequestModel):
    """Request model for creating a dashboard.

    Legacy ``access`` is folded into ``is_public`` here so storage only
    ever sees the current visibility shape.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    charts: List[ChartConfig] = []
    group_ids: List[int] = []
    is_public: Optional[bool] = None
    access: Optional[LegacyDashboardAccess] = Field(None, exclude=True)
    default_date_range: Optional[str] = None
    show_date_range_picker: bool = True
    layout: Optional[DashboardLayout] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("group_ids")
    @classmethod
    def dedupe_group_ids(cls, v: List[int]) -> List[int]:
        return list(dict.fromkeys(v))

    @field_validator("charts")
    @classmethod
    def unique_chart_ids(cls, v):
        return _ensure_unique_chart_ids(v)

    @model_validator(mode="after")
    def fold_legacy_access(self):
        if self.is_public is None:
            self.is_public = self.access == "public"
        return self


class UpdateDashboardRequest(RequestModel):
    """Request model for updating a dashboard. All fields optional."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    charts: Optional[List[ChartConfig]] = None
    group_ids: Optional[List[int]] = None
    is_public: Optional[bool] = None
    access: Optional[LegacyDashboardAccess] = Field(None, exclude=True)
    default_date_range: Optional[str] = None
    show_date_range_picker: Optional[bool] = None
    layout: Optional[DashboardLayout] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("group_ids")
    @classmethod
    def dedupe_group_ids(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return list(dict.fromkeys(v)) if v is not None else v

    @field_validator("charts")
    @classmethod
    def unique_chart_ids(cls, v):
        return _ensure_unique_chart_ids(v)

    @model_validator(mode="after")
    def fold_legacy_access(self):
        if self.is_public is None and self.access is not None:
            self.is_public = self.access == "public"
        return self


class ChartDataQuery(RequestModel):
    """Query-string window overriding a chart's stored time range."""

    start: Optional[datetime] = Field(None, validation_alias="from")
    end: Optional[datetime] = Field(None, validation_alias="to")

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, v):
        # Timestamps without an offset are read as UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_window(self):
        if (self.start is None) != (self.end is None):
            raise ValueError("Both from and to are required for a time window")
        if self.start is not None and self.start > self.end:
            raise ValueError("from must not be after to")
        return self


class ShareDashboardRequest(RequestModel):
    """Request model for granting a user access to a dashboard."""

    user_id: int = Field(..., ge=1)
    access_level: AccessLevel


# ==================== DTOs ====================


class DashboardShareDTO(ImmutableModel):
    """Immutable dashboard share data transfer object."""

    id: int
    dashboard_id: int
    user_id: int
    access_level: AccessLevel
    created_by: int
    created_at: Optional[datetime] = None


class DashboardDTO(ImmutableModel):
    """Immutable dashboard data transfer object.

    ``access_level`` and ``can_edit`` describe the requesting viewer.
    """

    id: int
    title: str
    description: Optional[str] = None
    charts: List[Dict[str, Any]] = []
    group_ids: List[int] = []
    is_public: bool = False
    default_date_range: Optional[str] = None
    show_date_range_picker: bool = True
    layout: Dict[str, int]
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    access_level: AccessLevel
    can_edit: bool
