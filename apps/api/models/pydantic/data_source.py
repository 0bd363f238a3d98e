"""
Pydantic 2 models for data source (table metadata) endpoints.
"""

# flake8: noqa: E501


from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from .base import ImmutableModel, RequestModel


class ColumnMetadata(RequestModel):
    """Curated metadata for one table column."""

    column_name: str = Field(..., min_length=1)
    data_type: str = Field(..., min_length=1)
    description: Optional[str] = None
    unit: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    format: Optional[str] = None
    active: Optional[bool] = None
    custom_fields: Optional[Dict[str, Any]] = None


def _ensure_unique_columns(columns: Optional[List[ColumnMetadata]]):
    if columns is None:
        return columns
    seen = set()
    for column in columns:
        if column.column_name in seen:
            raise ValueError(f"Duplicate column_name: {column.column_name}")
        seen.add(column.column_name)
    return columns


class TableSelection(RequestModel):
    """A table picked from a connection for metadata curation."""

    schema_name: Optional[str] = None
    table_name: str = Field(..., min_length=1)


class CreateDataSourcesRequest(RequestModel):
    """Request model for creating data sources from connection tables."""

    connection_id: int = Field(..., ge=1)
    tables: List[TableSelection] = Field(..., min_length=1)


class UpdateDataSourceRequest(RequestModel):
    """Request model for updating a data source's curated metadata."""

    description: Optional[str] = None
    columns: Optional[List[ColumnMetadata]] = None

    @field_validator("columns")
    @classmethod
    def unique_column_names(cls, v):
        return _ensure_unique_columns(v)


class DataSourceDTO(ImmutableModel):
    """Immutable data source data transfer object."""

    id: int
    connection_id: int
    table_name: str
    schema_name: Optional[str] = None
    description: Optional[str] = None
    columns: List[Dict[str, Any]] = []
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_pydal_row(cls, row, **overrides):
        data = row.as_dict()
        data["columns"] = data.pop("column_metadata", None) or []
        data.update(overrides)
        return cls.model_validate(data)
