"""Base database driver abstract class."""

# flake8: noqa: E501

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

# Row cap for one chart series
MAX_SERIES_ROWS = 5000

OPERATORS = {
    "eq": "=",
    "gt": ">",
    "lt": "<",
    "gte": ">=",
    "lte": "<=",
    "in": "IN",
}

TIME_BUCKETS = ("minute", "hour", "day", "week", "month")

AGGREGATES = ("avg", "sum", "min", "max", "count")


@dataclass(slots=True, frozen=True)
class ConnectionDescriptor:
    """Everything a driver needs to reach an external database."""

    db_type: str
    host: str
    port: int
    database: str
    username: str
    password: str


@dataclass(slots=True, frozen=True)
class SeriesFilter:
    column: str
    operator: str
    value: Any


@dataclass(slots=True, frozen=True)
class SeriesQuery:
    """One chart series: x/y columns of a table inside an optional window.

    With ``aggregate`` set the y value becomes ``aggregate(aggregate_column)``
    grouped by x, truncated to ``bucket`` when given.
    """

    table_name: str
    x_column: str
    y_column: str
    schema: Optional[str] = None
    series_column: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    filters: Tuple[SeriesFilter, ...] = ()
    aggregate: Optional[str] = None
    aggregate_column: Optional[str] = None
    bucket: Optional[str] = None
    limit: int = MAX_SERIES_ROWS

    def cache_parts(self) -> Dict[str, Any]:
        """Content identifying the series, used for cache keys."""
        return asdict(self)


class BaseDriver(ABC):
    """Abstract base class for external database drivers."""

    def __init__(self, descriptor: ConnectionDescriptor, timeout: float = 10.0):
        self.descriptor = descriptor
        self.timeout = timeout

    @abstractmethod
    def test_connection(self) -> bool:
        """Test connectivity. Never raises."""
        ...

    @abstractmethod
    def list_schemas(self) -> List[str]:
        ...

    @abstractmethod
    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        """List tables of the default schema, or of ``schema`` when given."""
        ...

    @abstractmethod
    def get_table_columns(self, table_name: str, schema: Optional[str] = None) -> List[Dict[str, str]]:
        """Describe a table's columns.

        Returns list of column entries:
        [{"column_name": "ts", "data_type": "timestamp without time zone"}]
        """
        ...

    @abstractmethod
    def fetch_series(self, query: SeriesQuery) -> List[Dict[str, Any]]:
        """Fetch chart rows as ``[{"x": ..., "y": ...}]``.

        Rows carry a ``series`` key when the query names a series column.
        """
        ...

    # ---------------------------------------------------------------
    # SQL dialect hooks
    # ---------------------------------------------------------------

    @abstractmethod
    def quote(self, identifier: str) -> str:
        ...

    @abstractmethod
    def placeholder(self, name: str, value: Any) -> str:
        """Bound parameter reference for ``value`` stored under ``name``."""
        ...

    @abstractmethod
    def bucket_expr(self, column_sql: str, bucket: str) -> str:
        ...

    @abstractmethod
    def table_ref(self, query: SeriesQuery) -> str:
        ...

    def condition(self, column_sql: str, operator: str, placeholder: str) -> str:
        return f"{column_sql} {OPERATORS[operator]} {placeholder}"

    def build_series_sql(self, query: SeriesQuery) -> Tuple[str, Dict[str, Any]]:
        """
        Render a series query into SQL plus bound parameters.

        Identifiers are quoted by the dialect and every value is bound, so
        chart settings never reach the SQL text unescaped.

        Raises:
            ValueError: Unknown operator, aggregate or bucket
        """
        params: Dict[str, Any] = {}

        def bind(value):
            name = f"p{len(params)}"
            params[name] = value
            return self.placeholder(name, value)

        x_sql = self.quote(query.x_column)
        series_sql = self.quote(query.series_column) if query.series_column else None

        if query.aggregate:
            if query.aggregate not in AGGREGATES:
                raise ValueError(f"Unsupported aggregate: {query.aggregate}")
            if query.bucket and query.bucket not in TIME_BUCKETS:
                raise ValueError(f"Unsupported time bucket: {query.bucket}")
            x_expr = self.bucket_expr(x_sql, query.bucket) if query.bucket else x_sql
            y_expr = f"{query.aggregate.upper()}({self.quote(query.aggregate_column or query.y_column)})"
        else:
            x_expr, y_expr = x_sql, self.quote(query.y_column)

        columns = [f"{x_expr} AS {self.quote('x')}", f"{y_expr} AS {self.quote('y')}"]
        if series_sql:
            columns.append(f"{series_sql} AS {self.quote('series')}")

        conditions = []
        if query.date_from is not None:
            conditions.append(f"{x_sql} >= {bind(query.date_from)}")
        if query.date_to is not None:
            conditions.append(f"{x_sql} <= {bind(query.date_to)}")
        for item in query.filters:
            if item.operator not in OPERATORS:
                raise ValueError(f"Unsupported operator: {item.operator}")
            conditions.append(self.condition(self.quote(item.column), item.operator, bind(item.value)))

        sql = f"SELECT {', '.join(columns)} FROM {self.table_ref(query)}"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        if query.aggregate:
            group_by = [x_expr] + ([series_sql] if series_sql else [])
            sql += " GROUP BY " + ", ".join(group_by)
        sql += f" ORDER BY {self.quote('x')} ASC LIMIT {int(query.limit)}"
        return sql, params

    def close(self) -> None:
        """Release any held resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
