"""Python 3.12 dataclasses with slots for SeriesBoard authorization values.

These are small immutable values passed between the request gate, the
role policy and the sharing engine.
"""

# flake8: noqa: E501


from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional, Tuple

ACCESS_NONE = "none"
ACCESS_VIEW = "view"
ACCESS_EDIT = "edit"

ACCESS_RANK = {ACCESS_NONE: 0, ACCESS_VIEW: 1, ACCESS_EDIT: 2}


@dataclass(slots=True, frozen=True)
class CurrentUser:
    """Authenticated identity resolved for a request."""

    id: int
    email: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_any_role(self, roles) -> bool:
        return bool(self.roles & set(roles))


@dataclass(slots=True, frozen=True)
class PolicyDecision:
    """Outcome of a route-level role check."""

    allowed: bool
    kind: Optional[str] = None  # unauthenticated | forbidden
    required_roles: Tuple[str, ...] = ()
    user_roles: Tuple[str, ...] = ()

    @property
    def message(self) -> Optional[str]:
        if self.kind != "forbidden":
            return None
        has = ", ".join(self.user_roles) if self.user_roles else "none"
        return f"Required role: {', '.join(self.required_roles)}, but user has: {has}"


@dataclass(slots=True, frozen=True)
class AccessDecision:
    """Effective visibility and access level of a dashboard for a viewer."""

    visible: bool
    access_level: str = ACCESS_NONE

    @property
    def can_edit(self) -> bool:
        return self.access_level == ACCESS_EDIT


NO_ACCESS = AccessDecision(visible=False, access_level=ACCESS_NONE)


@dataclass(slots=True, frozen=True)
class DashboardVisibility:
    """Normalized visibility of a stored dashboard.

    Stored rows may carry the current ``is_public`` flag, the legacy
    ``access`` string, or both; ``from_row`` collapses them into one shape.
    """

    is_public: bool
    group_ids: Tuple[int, ...] = ()

    @classmethod
    def from_row(cls, row: Any) -> "DashboardVisibility":
        is_public = row.get("is_public")
        legacy_access = row.get("access")
        group_ids = row.get("group_ids") or []

        if is_public is None:
            is_public = legacy_access == "public"

        return cls(is_public=bool(is_public), group_ids=tuple(int(g) for g in group_ids))
