"""Role policy and per-resource ownership gate.

Both are pure functions over identities and rows; neither touches storage.
"""

# flake8: noqa: E501


from typing import Any, Iterable, List, Optional

from apps.api.models.dataclasses import CurrentUser, PolicyDecision

ROLES = ("db_admin", "metadata_editor", "dashboard_creator", "user_admin", "public")

# Role whose holders may mutate any row of the collection
COLLECTION_ADMIN_ROLES = {
    "database_connection": "db_admin",
    "data_source": "metadata_editor",
}


def normalize_roles(roles: Optional[Iterable[str]]) -> List[str]:
    """
    De-duplicate a role list, drop unknown names and order by enumeration.

    Args:
        roles: Raw role names, possibly repeated

    Returns:
        Role names as a stable, duplicate-free list
    """
    present = set(roles or ())
    return [role for role in ROLES if role in present]


def check(acting_user: Optional[CurrentUser], required_roles: Iterable[str] = ()) -> PolicyDecision:
    """
    Decide whether an identity may pass a route-level role gate.

    Args:
        acting_user: Resolved identity, or None for anonymous requests
        required_roles: Roles of which at least one is needed; empty means
            any authenticated user

    Returns:
        PolicyDecision
    """
    required = tuple(dict.fromkeys(required_roles))

    if acting_user is None:
        return PolicyDecision(allowed=False, kind="unauthenticated", required_roles=required)

    if not required:
        return PolicyDecision(allowed=True)

    if acting_user.has_any_role(required):
        return PolicyDecision(allowed=True)

    return PolicyDecision(
        allowed=False,
        kind="forbidden",
        required_roles=required,
        user_roles=tuple(normalize_roles(acting_user.roles)),
    )


def can_mutate(resource_type: str, resource: Any, acting_user_id: Optional[int], acting_roles: Iterable[str]) -> bool:
    """
    Object-level gate for connection, data source and group mutations.

    Connections and data sources are governed by role possession: any holder
    of the collection's admin role may change any row. Groups may only be
    changed by their owner, whatever roles the caller holds.
    """
    if resource is None or acting_user_id is None:
        return False

    if resource_type == "group":
        return resource.owner == acting_user_id

    admin_role = COLLECTION_ADMIN_ROLES.get(resource_type)
    if admin_role is None:
        raise ValueError(f"No ownership rule for resource type: {resource_type}")
    return admin_role in set(acting_roles)
