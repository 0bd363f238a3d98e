"""User service package."""

from apps.api.services.users.service import UserService

__all__ = ["UserService"]
