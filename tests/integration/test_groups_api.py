"""
Integration tests for owner-scoped group endpoints.
"""

import pytest


def _create_group(client, headers, **overrides):
    body = {"name": "ops", "description": "Operations", "role": "view", "member_ids": []}
    body.update(overrides)
    return client.post("/api/v1/groups", headers=headers, json=body)


@pytest.mark.integration
class TestGroupsAPI:
    """Test /api/v1/groups endpoints."""

    def test_create_sets_owner(self, client, make_user, auth_header):
        owner_id = make_user()
        member_id = make_user()

        response = _create_group(client, auth_header(owner_id), member_ids=[member_id, member_id])

        assert response.status_code == 201
        data = response.get_json()
        assert data["owner"] == owner_id
        assert data["member_ids"] == [member_id]

    def test_unknown_member_rejected(self, client, make_user, auth_header):
        response = _create_group(client, auth_header(make_user()), member_ids=[999])
        assert response.status_code == 400
        assert response.get_json()["details"][0]["field"] == "member_ids"

    def test_list_only_own_groups(self, client, make_user, auth_header):
        alice = auth_header(make_user())
        bob = auth_header(make_user())
        _create_group(client, alice, name="alice-team")
        _create_group(client, bob, name="bob-team")

        names = [g["name"] for g in client.get("/api/v1/groups", headers=alice).get_json()]
        assert names == ["alice-team"]

    def test_owner_updates_and_deletes(self, client, make_user, auth_header):
        headers = auth_header(make_user())
        group_id = _create_group(client, headers).get_json()["id"]

        response = client.put(
            f"/api/v1/groups/{group_id}",
            headers=headers,
            json={"name": "ops", "description": "Ops on call", "role": "edit", "member_ids": []},
        )
        assert response.status_code == 200
        assert response.get_json()["role"] == "edit"

        assert client.delete(f"/api/v1/groups/{group_id}", headers=headers).status_code == 204
        assert client.get(f"/api/v1/groups/{group_id}", headers=headers).status_code == 404

    def test_non_owner_sees_not_found(self, client, db, make_user, auth_header):
        owner = auth_header(make_user())
        other = auth_header(make_user(roles=["user_admin", "db_admin", "dashboard_creator"]))
        group_id = _create_group(client, owner).get_json()["id"]

        assert client.get(f"/api/v1/groups/{group_id}", headers=other).status_code == 404
        assert client.put(
            f"/api/v1/groups/{group_id}",
            headers=other,
            json={"name": "x", "description": "y"},
        ).status_code == 404

        response = client.delete(f"/api/v1/groups/{group_id}", headers=other)
        assert response.status_code == 404
        assert db.user_groups[group_id] is not None

    def test_requires_authentication(self, client):
        assert client.get("/api/v1/groups").status_code == 401
