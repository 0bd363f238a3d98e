"""Dashboard sharing and group membership."""

from apps.api.services.sharing.engine import SharingEngine
from apps.api.services.sharing.membership import GroupMembershipIndex

__all__ = ["GroupMembershipIndex", "SharingEngine"]
