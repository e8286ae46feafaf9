"""Tests for the identity administration and profile routes."""

import pytest
from fastapi.testclient import TestClient

from broker.interface.api.app import create_app
from tests.di import build_test_container


@pytest.fixture
def client():
    """Test client over an app with in-memory store and mock Graph oracle."""
    return TestClient(create_app(build_test_container()))


def _bearer(client: TestClient, email: str = "ada@example.com") -> dict[str, str]:
    client.post(
        "/signup",
        json={"email": email, "password": "p4ssw0rd", "displayName": "Ada"},
    )
    session = client.post(
        "/loginLocal", json={"email": email, "password": "p4ssw0rd"}
    ).json()
    return {"Authorization": f"Bearer {session['accessToken']}"}


class TestAuthentication:
    """Protected routes reject missing or invalid bearer tokens."""

    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("get", "/users", None),
            ("post", "/users/delete", {"email": "ada@example.com"}),
            ("post", "/profile", {}),
        ],
    )
    def test_missing_bearer_is_unauthorized(self, client, method, path, body):
        kwargs = {"json": body} if body is not None else {}

        response = getattr(client, method)(path, **kwargs)

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_bearer_is_unauthorized(self, client):
        response = client.get("/users", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    def test_scheme_is_case_insensitive(self, client):
        headers = _bearer(client)
        token = headers["Authorization"].split(" ", 1)[1]

        response = client.get("/users", headers={"Authorization": f"bearer {token}"})

        assert response.status_code == 200


class TestUsersRoutes:
    """Tests for GET /users and POST /users/delete."""

    def test_list_users(self, client):
        headers = _bearer(client)

        response = client.get("/users", headers=headers)

        assert response.status_code == 200
        (user,) = response.json()
        assert user["email"] == "ada@example.com"
        assert user["displayName"] == "Ada"
        assert user["hasLocalAccount"] is True
        assert user["federationLinked"] is False
        assert "verifier" not in response.text

    def test_delete_user_removes_identity(self, client):
        headers = _bearer(client)
        _bearer(client, email="grace@example.com")

        response = client.post(
            "/users/delete", json={"email": "grace@example.com"}, headers=headers
        )

        assert response.status_code == 200
        emails = [u["email"] for u in client.get("/users", headers=headers).json()]
        assert emails == ["ada@example.com"]


class TestProfileRoute:
    """Tests for POST /profile."""

    def test_profile_of_local_identity(self, client):
        headers = _bearer(client)

        response = client.post("/profile", json={}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["localIdentity"]["email"] == "ada@example.com"
        assert data["federatedProfile"] is None

    def test_profile_of_federated_identity(self, client):
        session = client.post("/loginWithToken", json={"accessToken": "aad"}).json()

        response = client.post(
            "/profile",
            json={},
            headers={"Authorization": f"Bearer {session['accessToken']}"},
        )

        assert response.status_code == 200
        assert response.json()["federatedProfile"]["displayName"] == "Mock Graph User"

    def test_profile_of_deleted_identity_is_not_found(self, client):
        headers = _bearer(client)
        client.post("/users/delete", json={"email": "ada@example.com"}, headers=headers)

        response = client.post("/profile", json={}, headers=headers)

        assert response.status_code == 404
