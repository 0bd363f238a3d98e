"""Database connection endpoints (db_admin only).

Any db_admin may manage any connection. Passwords are write-only.
"""

# flake8: noqa: E501


from flask import Blueprint, current_app, g

from apps.api.auth.decorators import role_required
from apps.api.models.pydantic import CreateConnectionRequest, UpdateConnectionRequest
from apps.api.services.connections import ConnectionService
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import parse_request
from shared.utils.crypto import SecretBox

bp = Blueprint("database_connections", __name__)


def get_service():
    """Get ConnectionService instance."""
    return ConnectionService(
        current_app.db,
        secret_box=SecretBox.from_config(current_app.config),
        cache=current_app.extensions.get("content_cache"),
        driver_timeout=current_app.config.get("DRIVER_TIMEOUT", 10.0),
    )


@bp.route("", methods=["GET"])
@role_required("db_admin")
def list_connections():
    """List all database connections."""
    return ApiResponse.success(get_service().list_connections())


@bp.route("", methods=["POST"])
@role_required("db_admin")
def create_connection():
    """
    Register an external database.

    Request Body:
        {
            "name": "string",
            "type": "postgresql|clickhouse",
            "host": "string",
            "port": 5432,
            "database": "string",
            "username": "string",
            "password": "string"
        }

    Returns:
        201: Connection created (without password)
        400: Validation error
        403: Caller is not a db_admin
    """
    payload, error = parse_request(CreateConnectionRequest)
    if error:
        return error

    return ApiResponse.created(get_service().create_connection(payload, g.current_user))


@bp.route("/<int:connection_id>", methods=["GET"])
@role_required("db_admin")
def get_connection(connection_id):
    """Get one connection (without password)."""
    return ApiResponse.success(get_service().get_connection(connection_id))


@bp.route("/<int:connection_id>", methods=["PUT"])
@role_required("db_admin")
def update_connection(connection_id):
    """
    Update a connection. All fields optional; ``active`` toggles soft
    deactivation and a new ``password`` replaces the stored one.

    Returns:
        200: Updated connection
        400: Validation error
        404: Connection not found
    """
    payload, error = parse_request(UpdateConnectionRequest)
    if error:
        return error

    return ApiResponse.success(
        get_service().update_connection(connection_id, payload, g.current_user)
    )


@bp.route("/<int:connection_id>", methods=["DELETE"])
@role_required("db_admin")
def delete_connection(connection_id):
    """
    Delete a connection and its data sources.

    Returns:
        204: Deleted
        404: Connection not found
    """
    get_service().delete_connection(connection_id, g.current_user)
    return ApiResponse.no_content()


@bp.route("/<int:connection_id>/test", methods=["POST"])
@role_required("db_admin")
def test_connection(connection_id):
    """
    Check that the external database is reachable.

    Returns:
        200: {"valid": true|false}
        404: Connection not found
    """
    return ApiResponse.success(get_service().test_connection(connection_id))


@bp.route("/<int:connection_id>/schemas", methods=["GET"])
@role_required("db_admin")
def list_schemas(connection_id):
    """List schemas of the external database (always empty for ClickHouse)."""
    return ApiResponse.success(get_service().list_schemas(connection_id))


@bp.route("/<int:connection_id>/tables", methods=["GET"])
@role_required("db_admin")
def list_tables(connection_id):
    """List tables of the default schema (or the ClickHouse database)."""
    return ApiResponse.success(get_service().list_tables(connection_id))


@bp.route("/<int:connection_id>/schemas/<schema>/tables", methods=["GET"])
@role_required("db_admin")
def list_schema_tables(connection_id, schema):
    """List tables of one schema."""
    return ApiResponse.success(get_service().list_tables(connection_id, schema))
