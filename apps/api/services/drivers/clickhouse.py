"""ClickHouse driver over the HTTP interface."""

# flake8: noqa: E501

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from apps.api.services.drivers.base import BaseDriver, SeriesQuery

logger = logging.getLogger(__name__)

# Settings applied to chart queries: real columns win over select aliases in
# WHERE, and 64-bit numbers come back as JSON numbers.
SERIES_SETTINGS = {
    "prefer_column_name_to_alias": 1,
    "output_format_json_quote_64bit_integers": 0,
}


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("'", "\\'")


def _typed(value: Any) -> Tuple[str, str]:
    """ClickHouse type name and text form of a bound parameter value."""
    if isinstance(value, bool):
        return "Bool", "true" if value else "false"
    if isinstance(value, int):
        return "Int64", str(value)
    if isinstance(value, float):
        return "Float64", repr(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return "DateTime64(3)", value.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    if isinstance(value, (list, tuple)):
        inner = _typed(value[0])[0] if value else "String"
        items = []
        for item in value:
            item_type, text = _typed(item)
            items.append(f"'{_escape(text)}'" if item_type == "String" else text)
        return f"Array({inner})", "[" + ",".join(items) + "]"
    return "String", str(value)


class ClickHouseDriver(BaseDriver):
    """Introspects ClickHouse through ``system`` tables.

    ClickHouse has databases but no schemas; the connection's database plays
    the schema role, so ``list_schemas`` is always empty.
    """

    def __init__(self, descriptor, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        super().__init__(descriptor, timeout)
        self._client = httpx.Client(
            base_url=f"http://{descriptor.host}:{descriptor.port}",
            auth=(descriptor.username, descriptor.password),
            timeout=timeout,
            transport=transport,
        )

    def _query(self, sql: str, params: Optional[Dict[str, Any]] = None, settings: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        query_params = {"database": self.descriptor.database}
        query_params.update(settings or {})
        for name, value in (params or {}).items():
            query_params[f"param_{name}"] = value

        response = self._client.post("/", params=query_params, content=f"{sql} FORMAT JSON")
        response.raise_for_status()
        return response.json().get("data", [])

    def test_connection(self) -> bool:
        try:
            response = self._client.get("/ping")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("ClickHouse connection test failed for %s: %s", self.descriptor.host, e)
            return False

    def list_schemas(self) -> List[str]:
        return []

    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        rows = self._query(
            "SELECT name FROM system.tables WHERE database = {db:String} ORDER BY name",
            {"db": schema or self.descriptor.database},
        )
        return [row["name"] for row in rows]

    def get_table_columns(self, table_name: str, schema: Optional[str] = None) -> List[Dict[str, str]]:
        rows = self._query(
            "SELECT name, type FROM system.columns "
            "WHERE database = {db:String} AND table = {table:String} ORDER BY position",
            {"db": schema or self.descriptor.database, "table": table_name},
        )
        return [{"column_name": row["name"], "data_type": row["type"]} for row in rows]

    def quote(self, identifier: str) -> str:
        return "`" + identifier.replace("\\", "\\\\").replace("`", "\\`") + "`"

    def placeholder(self, name: str, value: Any) -> str:
        return f"{{{name}:{_typed(value)[0]}}}"

    def condition(self, column_sql: str, operator: str, placeholder: str) -> str:
        if operator == "in":
            return f"has({placeholder}, {column_sql})"
        return super().condition(column_sql, operator, placeholder)

    def bucket_expr(self, column_sql: str, bucket: str) -> str:
        return f"toStartOfInterval({column_sql}, INTERVAL 1 {bucket})"

    def table_ref(self, query: SeriesQuery) -> str:
        return f"{self.quote(query.schema or self.descriptor.database)}.{self.quote(query.table_name)}"

    def fetch_series(self, query: SeriesQuery) -> List[Dict[str, Any]]:
        sql, params = self.build_series_sql(query)
        encoded = {name: _typed(value)[1] for name, value in params.items()}
        return self._query(sql, encoded, settings=SERIES_SETTINGS)

    def close(self) -> None:
        self._client.close()
