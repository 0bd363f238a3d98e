"""Database connection service package."""

from apps.api.services.connections.service import ConnectionService

__all__ = ["ConnectionService"]
