"""
Integration tests for registration, login, tokens and profile endpoints.
"""

import pytest


def _register(client, email="ada@example.com", password="secret123"):
    return client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "first_name": "Ada", "last_name": "Lovelace"},
    )


@pytest.mark.integration
class TestAuthAPI:
    """Test /api/v1/auth endpoints."""

    def test_register_creates_user_without_roles(self, client):
        response = _register(client)

        assert response.status_code == 201
        data = response.get_json()
        assert data["user"]["email"] == "ada@example.com"
        assert data["user"]["roles"] == []
        assert "password_hash" not in data["user"]

    def test_register_duplicate_email(self, client):
        _register(client)
        response = _register(client, email="ADA@example.com")

        assert response.status_code == 400
        assert response.get_json() == {"error": "User already exists"}

    def test_register_invalid_input(self, client):
        response = client.post("/api/v1/auth/register", json={"email": "not-an-email"})

        assert response.status_code == 400
        data = response.get_json()
        assert data["error"] == "Invalid input"
        fields = {detail["field"] for detail in data["details"]}
        assert {"email", "password"} <= fields

    def test_register_non_json_body(self, client):
        response = client.post("/api/v1/auth/register", data="x", content_type="text/plain")
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid input"

    def test_login_returns_tokens(self, client):
        _register(client)
        response = client.post(
            "/api/v1/auth/login", json={"email": "ada@example.com", "password": "secret123"}
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["user"]["email"] == "ada@example.com"

    def test_login_wrong_password(self, client):
        _register(client)
        response = client.post(
            "/api/v1/auth/login", json={"email": "ada@example.com", "password": "wrong-one"}
        )
        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized"}

    def test_me_requires_token(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401

    def test_me_with_garbage_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_refresh_issues_new_access_token(self, client):
        _register(client)
        tokens = client.post(
            "/api/v1/auth/login", json={"email": "ada@example.com", "password": "secret123"}
        ).get_json()

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200

        me = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {response.get_json()['access_token']}"},
        )
        assert me.status_code == 200
        assert me.get_json()["email"] == "ada@example.com"

    def test_refresh_rejects_access_token(self, client):
        _register(client)
        tokens = client.post(
            "/api/v1/auth/login", json={"email": "ada@example.com", "password": "secret123"}
        ).get_json()

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401


@pytest.mark.integration
class TestProfileAPI:
    """Test /api/v1/profile endpoints."""

    def test_get_profile(self, client, make_user, auth_header):
        user_id = make_user(roles=["dashboard_creator"])
        response = client.get("/api/v1/profile", headers=auth_header(user_id))

        assert response.status_code == 200
        assert response.get_json()["roles"] == ["dashboard_creator"]

    def test_update_profile(self, client, make_user, auth_header):
        user_id = make_user()
        response = client.put(
            "/api/v1/profile",
            headers=auth_header(user_id),
            json={"first_name": " Grace ", "last_name": "Hopper", "organization": "Navy"},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["first_name"] == "Grace"
        assert data["organization"] == "Navy"

    def test_update_profile_requires_names(self, client, make_user, auth_header):
        user_id = make_user()
        response = client.put("/api/v1/profile", headers=auth_header(user_id), json={"first_name": ""})
        assert response.status_code == 400

    def test_change_password(self, client, make_user, auth_header):
        user_id = make_user(email="pw@example.com", password="old-password")
        response = client.put(
            "/api/v1/profile/password",
            headers=auth_header(user_id),
            json={"current_password": "old-password", "new_password": "new-password"},
        )
        assert response.status_code == 200
        assert response.get_json() == {"ok": True}

        login = client.post(
            "/api/v1/auth/login", json={"email": "pw@example.com", "password": "new-password"}
        )
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, make_user, auth_header):
        user_id = make_user(password="old-password")
        response = client.put(
            "/api/v1/profile/password",
            headers=auth_header(user_id),
            json={"current_password": "guess", "new_password": "new-password"},
        )
        assert response.status_code == 400
        assert response.get_json() == {"error": "Current password is incorrect"}
