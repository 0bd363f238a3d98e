"""Group service package."""

from apps.api.services.groups.service import GroupService

__all__ = ["GroupService"]
