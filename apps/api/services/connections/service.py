"""Database connection service - CRUD and introspection of external databases."""

# flake8: noqa: E501

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from apps.api.auth.policy import can_mutate
from apps.api.exceptions import ForbiddenError, NotFoundError
from apps.api.models.dataclasses import CurrentUser
from apps.api.models.pydantic import (
    ConnectionDTO,
    CreateConnectionRequest,
    UpdateConnectionRequest,
)
from apps.api.services.drivers import ConnectionDescriptor, SeriesQuery, get_driver
from shared.utils.content_cache import ContentCache
from shared.utils.crypto import SecretBox

logger = logging.getLogger(__name__)


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def _json_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{name: _json_value(value) for name, value in dict(row).items()} for row in rows]


# API field -> storage column
_FIELD_MAP = {
    "name": "name",
    "type": "db_type",
    "host": "host",
    "port": "port",
    "database": "database_name",
    "username": "username",
    "active": "active",
}


class ConnectionService:
    """Service layer for database connection operations.

    Any ``db_admin`` may manage any connection. Passwords are stored
    encrypted and never leave this service except inside a driver
    descriptor.
    """

    def __init__(self, db, secret_box: SecretBox, cache: Optional[ContentCache] = None, driver_timeout: float = 10.0):
        self.db = db
        self.secret_box = secret_box
        self.cache = cache
        self.driver_timeout = driver_timeout

    # ---------------------------------------------------------------
    # CRUD
    # ---------------------------------------------------------------

    def _get_row(self, connection_id: int):
        row = self.db.database_connections[connection_id]
        if not row:
            raise NotFoundError("Connection not found")
        return row

    def _to_dict(self, row) -> Dict[str, Any]:
        return ConnectionDTO.from_pydal_row(row).model_dump(mode="json")

    def _ensure_can_mutate(self, row, user: CurrentUser) -> None:
        if not can_mutate("database_connection", row, user.id, user.roles):
            raise ForbiddenError("Required role: db_admin")

    def list_connections(self) -> List[Dict[str, Any]]:
        rows = self.db(self.db.database_connections).select(
            orderby=~self.db.database_connections.created_at
        )
        return [self._to_dict(row) for row in rows]

    def get_connection(self, connection_id: int) -> Dict[str, Any]:
        return self._to_dict(self._get_row(connection_id))

    def create_connection(self, payload: CreateConnectionRequest, user: CurrentUser) -> Dict[str, Any]:
        connection_id = self.db.database_connections.insert(
            name=payload.name,
            db_type=payload.type,
            host=payload.host,
            port=payload.port,
            database_name=payload.database,
            username=payload.username,
            password_encrypted=self.secret_box.encrypt(payload.password),
            active=payload.active,
            created_by=user.id,
        )
        self.db.commit()
        logger.info("User %s created connection %s", user.id, connection_id)
        return self.get_connection(connection_id)

    def update_connection(self, connection_id: int, payload: UpdateConnectionRequest, user: CurrentUser) -> Dict[str, Any]:
        row = self._get_row(connection_id)
        self._ensure_can_mutate(row, user)

        changes = {
            column: getattr(payload, field)
            for field, column in _FIELD_MAP.items()
            if getattr(payload, field) is not None
        }
        if payload.password is not None:
            changes["password_encrypted"] = self.secret_box.encrypt(payload.password)

        if changes:
            self._invalidate(row)
            row.update_record(**changes)
            self.db.commit()
            logger.info("User %s updated connection %s", user.id, connection_id)

        return self.get_connection(connection_id)

    def delete_connection(self, connection_id: int, user: CurrentUser) -> None:
        row = self._get_row(connection_id)
        self._ensure_can_mutate(row, user)
        self._invalidate(row)
        self.db(self.db.data_sources.connection_id == connection_id).delete()
        self.db(self.db.database_connections.id == connection_id).delete()
        self.db.commit()
        logger.info("User %s deleted connection %s", user.id, connection_id)

    # ---------------------------------------------------------------
    # Introspection
    # ---------------------------------------------------------------

    def descriptor(self, row) -> ConnectionDescriptor:
        return ConnectionDescriptor(
            db_type=row.db_type,
            host=row.host,
            port=row.port,
            database=row.database_name,
            username=row.username,
            password=self.secret_box.decrypt(row.password_encrypted),
        )

    def _cache_base(self, row) -> str:
        return ContentCache.key_for(
            "connection",
            db_type=row.db_type,
            host=row.host,
            port=row.port,
            database=row.database_name,
            username=row.username,
        )

    def _invalidate(self, row) -> None:
        if self.cache is not None:
            self.cache.invalidate(prefix=self._cache_base(row))

    def _cached(self, row, suffix: str, loader):
        if self.cache is None:
            return loader()
        key = f"{self._cache_base(row)}:{suffix}"
        value = self.cache.get(key)
        if value is None:
            value = loader()
            self.cache.put(key, value)
        return value

    def _with_driver(self, row, action):
        with get_driver(self.descriptor(row), timeout=self.driver_timeout) as driver:
            return action(driver)

    def test_connection(self, connection_id: int) -> Dict[str, bool]:
        row = self._get_row(connection_id)
        valid = self._with_driver(row, lambda driver: driver.test_connection())
        return {"valid": bool(valid)}

    def list_schemas(self, connection_id: int) -> List[str]:
        row = self._get_row(connection_id)
        return self._cached(
            row, "schemas", lambda: self._with_driver(row, lambda driver: driver.list_schemas())
        )

    def list_tables(self, connection_id: int, schema: Optional[str] = None) -> List[str]:
        row = self._get_row(connection_id)
        return self._cached(
            row,
            f"tables:{schema or ''}",
            lambda: self._with_driver(row, lambda driver: driver.list_tables(schema)),
        )

    def get_table_columns(self, connection_id: int, table_name: str, schema: Optional[str] = None) -> List[Dict[str, str]]:
        row = self._get_row(connection_id)
        return self._with_driver(row, lambda driver: driver.get_table_columns(table_name, schema))

    def fetch_series(self, connection_id: int, query: SeriesQuery) -> List[Dict[str, Any]]:
        """
        Fetch chart rows through the connection's driver.

        Results are cached on the connection descriptor plus the query
        content, so identical charts share one entry until the TTL runs out
        or the connection changes.
        """
        row = self._get_row(connection_id)
        suffix = "series:" + ContentCache.key_for("series", **query.cache_parts())
        return self._cached(
            row, suffix, lambda: self._with_driver(row, lambda driver: _json_rows(driver.fetch_series(query)))
        )
