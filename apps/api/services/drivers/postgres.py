"""PostgreSQL driver using a short-lived PyDAL connection."""

# flake8: noqa: E501

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydal import DAL

from apps.api.services.drivers.base import BaseDriver, SeriesQuery

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"


class PostgresDriver(BaseDriver):
    """Introspects PostgreSQL through ``information_schema``."""

    def __init__(self, descriptor, timeout: float = 10.0):
        super().__init__(descriptor, timeout)
        self._db = None

    def _uri(self) -> str:
        d = self.descriptor
        return (
            f"postgres://{quote(d.username, safe='')}:{quote(d.password, safe='')}"
            f"@{d.host}:{d.port}/{quote(d.database, safe='')}"
        )

    @property
    def db(self):
        if self._db is None:
            self._db = DAL(
                self._uri(),
                migrate=False,
                migrate_enabled=False,
                pool_size=0,
                attempts=1,
                driver_args={"connect_timeout": int(self.timeout)},
            )
        return self._db

    def _column(self, sql: str, placeholders: Optional[Dict[str, str]] = None) -> List[str]:
        rows = self.db.executesql(sql, placeholders=placeholders)
        return [row[0] for row in rows]

    def test_connection(self) -> bool:
        try:
            self.db.executesql("SELECT 1")
            return True
        except Exception as e:
            logger.warning("PostgreSQL connection test failed for %s: %s", self.descriptor.host, e)
            return False

    def list_schemas(self) -> List[str]:
        return self._column(
            "SELECT schema_name FROM information_schema.schemata "
            "WHERE schema_name NOT IN ('pg_catalog', 'information_schema') "
            "AND schema_name NOT LIKE 'pg_toast%' AND schema_name NOT LIKE 'pg_temp%' "
            "ORDER BY schema_name"
        )

    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        return self._column(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = %(schema)s AND table_type IN ('BASE TABLE', 'VIEW') "
            "ORDER BY table_name",
            {"schema": schema or DEFAULT_SCHEMA},
        )

    def get_table_columns(self, table_name: str, schema: Optional[str] = None) -> List[Dict[str, str]]:
        rows = self.db.executesql(
            "SELECT column_name, data_type FROM information_schema.columns "
            "WHERE table_schema = %(schema)s AND table_name = %(table)s "
            "ORDER BY ordinal_position",
            placeholders={"schema": schema or DEFAULT_SCHEMA, "table": table_name},
        )
        return [{"column_name": name, "data_type": data_type} for name, data_type in rows]

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def placeholder(self, name: str, value: Any) -> str:
        return f"%({name})s"

    def bucket_expr(self, column_sql: str, bucket: str) -> str:
        return f"date_trunc('{bucket}', {column_sql})"

    def table_ref(self, query: SeriesQuery) -> str:
        return f"{self.quote(query.schema or DEFAULT_SCHEMA)}.{self.quote(query.table_name)}"

    def fetch_series(self, query: SeriesQuery) -> List[Dict[str, Any]]:
        sql, params = self.build_series_sql(query)
        # psycopg2 renders tuples as IN lists
        params = {name: tuple(value) if isinstance(value, list) else value for name, value in params.items()}
        return self.db.executesql(sql, placeholders=params, as_dict=True)

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None
