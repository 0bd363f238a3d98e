"""Data source service package."""

from apps.api.services.data_sources.service import DataSourceService, merge_columns

__all__ = ["DataSourceService", "merge_columns"]
