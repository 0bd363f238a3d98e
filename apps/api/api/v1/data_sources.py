"""Data source endpoints (metadata_editor only)."""

# flake8: noqa: E501


from flask import Blueprint, current_app, g, request

from apps.api.api.v1.database_connections import get_service as get_connection_service
from apps.api.auth.decorators import role_required
from apps.api.models.pydantic import CreateDataSourcesRequest, UpdateDataSourceRequest
from apps.api.services.data_sources import DataSourceService
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import parse_request

bp = Blueprint("data_sources", __name__)


def get_service():
    """Get DataSourceService instance."""
    return DataSourceService(current_app.db)


@bp.route("", methods=["GET"])
@role_required("metadata_editor")
def list_data_sources():
    """
    List data sources.

    Query params:
        - connection_id: Only data sources of this connection

    Returns:
        200: List of data sources
    """
    connection_id = request.args.get("connection_id", type=int)
    return ApiResponse.success(get_service().list_data_sources(connection_id))


@bp.route("", methods=["POST"])
@role_required("metadata_editor")
def create_data_sources():
    """
    Create or refresh data sources from tables of a connection.

    Columns are read from the database; curated metadata of columns that
    were already described is kept.

    Request Body:
        {
            "connection_id": 1,
            "tables": [{"schema_name": "public", "table_name": "readings"}]
        }

    Returns:
        201: {"data_sources": [...]}
        400: Validation error
        404: Connection not found
    """
    payload, error = parse_request(CreateDataSourcesRequest)
    if error:
        return error

    data_sources = get_service().create_from_tables(payload, g.current_user, get_connection_service())
    return ApiResponse.created({"data_sources": data_sources})


@bp.route("/<int:data_source_id>", methods=["GET"])
@role_required("metadata_editor")
def get_data_source(data_source_id):
    """Get one data source."""
    return ApiResponse.success(get_service().get_data_source(data_source_id))


@bp.route("/<int:data_source_id>", methods=["PUT"])
@role_required("metadata_editor")
def update_data_source(data_source_id):
    """
    Update a data source's description and column metadata.

    Returns:
        200: Updated data source
        400: Validation error (including duplicate column names)
        404: Data source not found
    """
    payload, error = parse_request(UpdateDataSourceRequest)
    if error:
        return error

    return ApiResponse.success(
        get_service().update_data_source(data_source_id, payload, g.current_user)
    )


@bp.route("/<int:data_source_id>", methods=["DELETE"])
@role_required("metadata_editor")
def delete_data_source(data_source_id):
    """Delete a data source."""
    get_service().delete_data_source(data_source_id, g.current_user)
    return ApiResponse.no_content()
