"""Translate a stored chart into the series query its driver runs."""

# flake8: noqa: E501

from datetime import datetime
from typing import Optional, Tuple

from apps.api.models.pydantic import ChartConfig
from apps.api.services.drivers import SeriesFilter, SeriesQuery


def series_query_for(chart: ChartConfig, data_source, window: Optional[Tuple[datetime, datetime]] = None) -> SeriesQuery:
    """
    Build the series query for ``chart`` against its data source table.

    A ``window`` from the caller replaces the chart's stored time range.
    """
    filters = chart.filters
    date_from = date_to = None
    if window is not None:
        date_from, date_to = window
    elif filters and filters.time_range:
        date_from, date_to = filters.time_range.start, filters.time_range.end

    value_filters = tuple(
        SeriesFilter(column=item.column, operator=item.operator, value=item.value)
        for item in ((filters.value_filters or []) if filters else [])
    )

    aggregation = chart.aggregation
    return SeriesQuery(
        table_name=data_source.table_name,
        schema=data_source.schema_name or None,
        x_column=chart.x_axis,
        y_column=chart.y_axis,
        series_column=chart.group_by or None,
        date_from=date_from,
        date_to=date_to,
        filters=value_filters,
        aggregate=aggregation.type if aggregation else None,
        aggregate_column=aggregation.column if aggregation else None,
        bucket=aggregation.group_by if aggregation else None,
    )
