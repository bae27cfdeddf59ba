"""Integration tests for API endpoints.

These tests verify the HTTP surface maps repository results and failures
to the expected status codes and bodies.
"""

import uuid
from datetime import datetime


def _create(test_client, **fields):
    response = test_client.post("/users", json=fields)
    assert response.status_code == 201, response.text
    return response.json()["user"]


class TestUserEndpoints:
    """Test user CRUD API endpoints."""

    def test_create_user(self, test_client):
        """Test POST /users endpoint."""
        user = _create(test_client, username="alice", name="Alice", password="pw")

        assert user["username"] == "alice"
        assert user["name"] == "Alice"
        assert user["id"]
        assert user["created_at"] == user["updated_at"]
        assert "version" not in user

    def test_create_duplicate_returns_409(self, test_client):
        _create(test_client, username="alice")

        response = test_client.post("/users", json={"username": "alice"})

        assert response.status_code == 409
        assert response.json() == {
            "status": 409,
            "title": "User Already Exists",
            "detail": "There is already a user with username 'alice'.",
        }

    def test_create_without_username_returns_422(self, test_client):
        response = test_client.post("/users", json={"name": "Nobody"})
        assert response.status_code == 422

    def test_get_user(self, test_client):
        user = _create(test_client, username="alice")

        response = test_client.get(f"/users/{user['id']}")

        assert response.status_code == 200
        assert response.json()["user"] == user

    def test_get_missing_user_returns_404(self, test_client):
        missing_id = str(uuid.uuid4())

        response = test_client.get(f"/users/{missing_id}")

        assert response.status_code == 404
        body = response.json()
        assert body["title"] == "User Not Found"
        assert missing_id in body["detail"]

    def test_list_users(self, test_client):
        for username, name in [("c", "Carol"), ("a", "Alice"), ("b", "Bob")]:
            _create(test_client, username=username, name=name)

        response = test_client.get("/users", params={"skip": 1, "limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["skip"] == 1
        assert data["limit"] == 1
        assert [u["name"] for u in data["users"]] == ["Bob"]

    def test_list_users_with_filter_and_fields(self, test_client):
        _create(test_client, username="a", name="Alice", blocked=True, password="pw")
        _create(test_client, username="b", name="Bob", blocked=False, password="pw")

        response = test_client.get("/users", params={"blocked": "true", "fields": "-password"})

        assert response.status_code == 200
        users = response.json()["users"]
        assert len(users) == 1
        assert users[0]["username"] == "a"
        assert "password" not in users[0]

    def test_list_users_empty(self, test_client):
        response = test_client.get("/users")
        assert response.status_code == 200
        assert response.json()["users"] == []

    def test_list_users_bad_fields_returns_400(self, test_client):
        response = test_client.get("/users", params={"fields": "name,-password"})
        assert response.status_code == 400
        body = response.json()
        assert body["status"] == 400
        assert body["title"] == "Invalid Query"
        assert "mix" in body["detail"]

    def test_list_users_rejects_negative_skip(self, test_client):
        response = test_client.get("/users", params={"skip": -1})
        assert response.status_code == 422

    def test_patch_user(self, test_client):
        user = _create(test_client, username="alice", name="Alice")

        response = test_client.patch("/users/alice", json={"blocked": True})

        assert response.status_code == 200
        patched = response.json()["user"]
        assert patched["blocked"] is True
        assert patched["name"] == "Alice"
        assert datetime.fromisoformat(patched["updated_at"]) > datetime.fromisoformat(user["updated_at"])

    def test_patch_missing_user_returns_404(self, test_client):
        response = test_client.patch("/users/ghost", json={"blocked": True})
        assert response.status_code == 404
        assert response.json()["detail"] == "No user 'ghost' found."

    def test_patch_rename_collision_returns_409(self, test_client):
        _create(test_client, username="alice")
        _create(test_client, username="bob")

        response = test_client.patch("/users/bob", json={"username": "alice"})

        assert response.status_code == 409

    def test_delete_user(self, test_client):
        user = _create(test_client, username="alice")

        response = test_client.delete("/users/alice")

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["id"]
        assert test_client.get(f"/users/{user['id']}").status_code == 404
        assert test_client.delete("/users/alice").status_code == 404
