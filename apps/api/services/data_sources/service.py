"""Data source service - curated column metadata for connection tables."""

# flake8: noqa: E501

import logging
from typing import Any, Dict, List, Optional

from apps.api.auth.policy import can_mutate
from apps.api.exceptions import ForbiddenError, NotFoundError
from apps.api.models.dataclasses import CurrentUser
from apps.api.models.pydantic import (
    CreateDataSourcesRequest,
    DataSourceDTO,
    UpdateDataSourceRequest,
)

logger = logging.getLogger(__name__)

# Curated fields carried over when a table is re-introspected
_PRESERVED_FIELDS = ("unit", "min_value", "max_value", "format", "custom_fields")


def merge_columns(fresh: List[Dict[str, str]], existing: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Merge freshly introspected columns with previously curated metadata.

    The column list and data types come from the database; descriptions,
    active flags and the other curated fields come from ``existing`` when a
    column of the same name was already described. Columns that no longer
    exist are dropped.
    """
    existing_by_name = {col.get("column_name"): col for col in existing or []}
    merged = []
    for column in fresh:
        name = column["column_name"]
        previous = existing_by_name.get(name, {})
        entry = {
            "column_name": name,
            "data_type": column["data_type"],
            "description": previous.get("description") or "",
            "active": previous.get("active") if previous.get("active") is not None else True,
        }
        for field in _PRESERVED_FIELDS:
            if previous.get(field) is not None:
                entry[field] = previous[field]
        merged.append(entry)
    return merged


class DataSourceService:
    """Service layer for data source operations.

    Any ``metadata_editor`` may manage any data source.
    """

    def __init__(self, db):
        self.db = db

    def _get_row(self, data_source_id: int):
        row = self.db.data_sources[data_source_id]
        if not row:
            raise NotFoundError("Data source not found")
        return row

    def _to_dict(self, row) -> Dict[str, Any]:
        return DataSourceDTO.from_pydal_row(row).model_dump(mode="json")

    def _ensure_can_mutate(self, row, user: CurrentUser) -> None:
        if not can_mutate("data_source", row, user.id, user.roles):
            raise ForbiddenError("Required role: metadata_editor")

    def _find(self, connection_id: int, table_name: str, schema_name: Optional[str]):
        table = self.db.data_sources
        return (
            self.db(
                (table.connection_id == connection_id)
                & (table.table_name == table_name)
                & (table.schema_name == (schema_name or None))
            )
            .select()
            .first()
        )

    def list_data_sources(self, connection_id: Optional[int] = None) -> List[Dict[str, Any]]:
        table = self.db.data_sources
        query = table.id > 0
        if connection_id is not None:
            query &= table.connection_id == connection_id
        rows = self.db(query).select(orderby=table.table_name)
        return [self._to_dict(row) for row in rows]

    def get_data_source(self, data_source_id: int) -> Dict[str, Any]:
        return self._to_dict(self._get_row(data_source_id))

    def create_from_tables(self, payload: CreateDataSourcesRequest, user: CurrentUser, connections) -> List[Dict[str, Any]]:
        """
        Create or refresh one data source per selected table.

        Args:
            payload: Connection and table selection
            user: Acting metadata editor
            connections: ConnectionService used to introspect columns

        Raises:
            NotFoundError: If the connection does not exist
        """
        connections.get_connection(payload.connection_id)

        results = []
        for selection in payload.tables:
            fresh = connections.get_table_columns(
                payload.connection_id, selection.table_name, selection.schema_name
            )
            existing = self._find(payload.connection_id, selection.table_name, selection.schema_name)

            if existing:
                self._ensure_can_mutate(existing, user)
                existing.update_record(column_metadata=merge_columns(fresh, existing.column_metadata))
                data_source_id = existing.id
            else:
                data_source_id = self.db.data_sources.insert(
                    connection_id=payload.connection_id,
                    table_name=selection.table_name,
                    schema_name=selection.schema_name or None,
                    description="",
                    column_metadata=merge_columns(fresh, None),
                    created_by=user.id,
                )
            results.append(data_source_id)

        self.db.commit()
        logger.info("User %s synced %d data sources on connection %s", user.id, len(results), payload.connection_id)
        return [self.get_data_source(data_source_id) for data_source_id in results]

    def update_data_source(self, data_source_id: int, payload: UpdateDataSourceRequest, user: CurrentUser) -> Dict[str, Any]:
        row = self._get_row(data_source_id)
        self._ensure_can_mutate(row, user)

        changes = {}
        if payload.description is not None:
            changes["description"] = payload.description
        if payload.columns is not None:
            changes["column_metadata"] = [
                column.model_dump(exclude_none=True) for column in payload.columns
            ]

        if changes:
            row.update_record(**changes)
            self.db.commit()

        return self.get_data_source(data_source_id)

    def delete_data_source(self, data_source_id: int, user: CurrentUser) -> None:
        row = self._get_row(data_source_id)
        self._ensure_can_mutate(row, user)
        self.db(self.db.data_sources.id == data_source_id).delete()
        self.db.commit()
        logger.info("User %s deleted data source %s", user.id, data_source_id)
