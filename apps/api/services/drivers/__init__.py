"""External database drivers."""

# flake8: noqa: E501

from apps.api.services.drivers.base import (
    BaseDriver,
    ConnectionDescriptor,
    SeriesFilter,
    SeriesQuery,
)
from apps.api.services.drivers.clickhouse import ClickHouseDriver
from apps.api.services.drivers.postgres import PostgresDriver

DRIVER_MAP = {
    "postgresql": PostgresDriver,
    "clickhouse": ClickHouseDriver,
}


def get_driver(descriptor: ConnectionDescriptor, timeout: float = 10.0) -> BaseDriver:
    """Instantiate the driver for a connection descriptor."""
    driver_cls = DRIVER_MAP.get(descriptor.db_type)
    if not driver_cls:
        raise ValueError(f"Unsupported database type: {descriptor.db_type}")
    return driver_cls(descriptor, timeout=timeout)


__all__ = [
    "BaseDriver",
    "ConnectionDescriptor",
    "DRIVER_MAP",
    "SeriesFilter",
    "SeriesQuery",
    "get_driver",
]
