"""
Unit tests for the role policy and the per-resource ownership gate.
"""

from types import SimpleNamespace

import pytest

from apps.api.auth import policy
from apps.api.models.dataclasses import CurrentUser


def _user(*roles, user_id=1):
    return CurrentUser(id=user_id, email="u@example.com", roles=frozenset(roles))


class TestRoleCheck:
    """Test policy.check route-level decisions."""

    def test_anonymous_is_unauthenticated(self):
        decision = policy.check(None, ("db_admin",))
        assert not decision.allowed
        assert decision.kind == "unauthenticated"
        assert decision.message is None

    def test_anonymous_is_unauthenticated_without_required_roles(self):
        decision = policy.check(None)
        assert not decision.allowed
        assert decision.kind == "unauthenticated"

    def test_any_authenticated_user_passes_empty_requirement(self):
        assert policy.check(_user()).allowed

    def test_one_matching_role_is_enough(self):
        decision = policy.check(_user("metadata_editor"), ("db_admin", "metadata_editor"))
        assert decision.allowed

    def test_missing_role_is_forbidden_with_message(self):
        decision = policy.check(_user("dashboard_creator", "metadata_editor"), ("db_admin",))
        assert not decision.allowed
        assert decision.kind == "forbidden"
        assert decision.message == (
            "Required role: db_admin, but user has: metadata_editor, dashboard_creator"
        )

    def test_forbidden_message_for_user_without_roles(self):
        decision = policy.check(_user(), ("user_admin",))
        assert decision.message == "Required role: user_admin, but user has: none"

    def test_required_roles_are_deduplicated(self):
        decision = policy.check(_user(), ("db_admin", "db_admin"))
        assert decision.required_roles == ("db_admin",)


class TestNormalizeRoles:
    """Test role list normalization."""

    def test_duplicates_collapse(self):
        assert policy.normalize_roles(["db_admin", "db_admin"]) == ["db_admin"]

    def test_order_follows_enumeration(self):
        roles = ["public", "user_admin", "db_admin"]
        assert policy.normalize_roles(roles) == ["db_admin", "user_admin", "public"]

    def test_unknown_roles_are_dropped(self):
        assert policy.normalize_roles(["superuser", "public"]) == ["public"]

    def test_none_is_empty(self):
        assert policy.normalize_roles(None) == []


class TestCanMutate:
    """Test the object-level ownership gate."""

    def test_group_owner_may_mutate(self):
        group = SimpleNamespace(owner=7)
        assert policy.can_mutate("group", group, 7, ())

    def test_group_non_owner_denied_even_with_every_role(self):
        group = SimpleNamespace(owner=7)
        assert not policy.can_mutate("group", group, 8, policy.ROLES)

    def test_connection_requires_db_admin_not_ownership(self):
        connection = SimpleNamespace(created_by=1)
        assert policy.can_mutate("database_connection", connection, 2, ["db_admin"])
        assert not policy.can_mutate("database_connection", connection, 1, ["metadata_editor"])

    def test_data_source_requires_metadata_editor(self):
        data_source = SimpleNamespace(created_by=1)
        assert policy.can_mutate("data_source", data_source, 3, ["metadata_editor"])
        assert not policy.can_mutate("data_source", data_source, 3, ["db_admin"])

    def test_missing_resource_or_anonymous_denied(self):
        assert not policy.can_mutate("group", None, 1, ())
        assert not policy.can_mutate("group", SimpleNamespace(owner=1), None, ())

    def test_unknown_resource_type_raises(self):
        with pytest.raises(ValueError):
            policy.can_mutate("dashboard", SimpleNamespace(), 1, ())
