"""Tests for the session routes."""

import pytest
from fastapi.testclient import TestClient

from broker.adapter.graph import MockGraphIdentityOracle
from broker.interface.api.app import create_app
from tests.di import build_test_container

MOCK_EMAIL = MockGraphIdentityOracle.DEFAULT_PROFILE.email


@pytest.fixture
def client():
    """Test client over an app with in-memory store and mock Graph oracle."""
    return TestClient(create_app(build_test_container()))


def _sign_up(client: TestClient, email: str = "ada@example.com") -> None:
    response = client.post(
        "/signup",
        json={"email": email, "password": "p4ssw0rd", "displayName": "Ada"},
    )
    assert response.status_code == 200


class TestSignUpRoute:
    """Tests for POST /signup."""

    def test_sign_up_succeeds_without_session(self, client):
        response = client.post(
            "/signup",
            json={
                "email": "ada@example.com",
                "password": "p4ssw0rd",
                "displayName": "Ada",
            },
        )

        assert response.status_code == 200
        assert response.json() is None

    def test_duplicate_email_is_bad_request(self, client):
        _sign_up(client)

        response = client.post(
            "/signup",
            json={"email": "ADA@example.com", "password": "x", "displayName": "A"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Email address already exists"

    def test_invalid_body_does_not_echo_password(self, client):
        response = client.post(
            "/signup",
            json={"email": "not-an-email", "password": "s3cret-value"},
        )

        assert response.status_code == 400
        assert "s3cret-value" not in response.text


class TestLoginLocalRoute:
    """Tests for POST /loginLocal."""

    def test_login_returns_camel_case_session(self, client):
        _sign_up(client)

        response = client.post(
            "/loginLocal", json={"email": "ada@example.com", "password": "p4ssw0rd"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["displayName"] == "Ada"
        assert data["accessToken"]
        assert data["refreshToken"]
        assert isinstance(data["tokenExpiry"], int)
        assert data["graphAccessToken"] is None
        assert data["requireLink"] is False

    def test_wrong_password_is_bad_request(self, client):
        _sign_up(client)

        response = client.post(
            "/loginLocal", json={"email": "ada@example.com", "password": "wrong"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Email not found or password incorrect"

    def test_blank_password_is_bad_request(self, client):
        response = client.post(
            "/loginLocal", json={"email": "ada@example.com", "password": ""}
        )

        assert response.status_code == 400
        assert "both email and password" in response.json()["detail"]


class TestRefreshTokenRoute:
    """Tests for POST /refreshToken."""

    def test_refresh_rotates_and_old_token_is_not_found(self, client):
        _sign_up(client)
        session = client.post(
            "/loginLocal", json={"email": "ada@example.com", "password": "p4ssw0rd"}
        ).json()

        first = client.post("/refreshToken", json={"token": session["refreshToken"]})
        second = client.post("/refreshToken", json={"token": session["refreshToken"]})

        assert first.status_code == 200
        assert first.json()["refreshToken"] != session["refreshToken"]
        assert second.status_code == 404


class TestFederatedLoginRoutes:
    """Tests for POST /loginWithToken and POST /linkWithIdentity."""

    def test_new_federated_user_gets_session(self, client):
        response = client.post("/loginWithToken", json={"accessToken": "aad-token"})

        assert response.status_code == 200
        data = response.json()
        assert data["requireLink"] is False
        assert data["graphAccessToken"] == "graph:aad-token"
        assert data["accessToken"]

    def test_rejected_assertion_is_bad_gateway(self, client):
        response = client.post("/loginWithToken", json={"accessToken": "invalid"})

        assert response.status_code == 502
        assert response.json() == {"detail": "Federated sign-in failed"}

    def test_missing_access_token_is_bad_request(self, client):
        response = client.post("/loginWithToken", json={})

        assert response.status_code == 400

    def test_link_prompt_then_link(self, client):
        """Email collision asks for confirmation, then links on request."""
        _sign_up(client, email=MOCK_EMAIL)

        prompt = client.post("/loginWithToken", json={"accessToken": "aad-token"})
        linked = client.post(
            "/linkWithIdentity", json={"accessToken": "aad-token", "link": True}
        )

        assert prompt.status_code == 200
        assert prompt.json()["requireLink"] is True
        assert prompt.json()["accessToken"] is None
        assert linked.status_code == 200
        assert linked.json()["requireLink"] is False
        assert linked.json()["displayName"] == "Ada"

        users = client.get(
            "/users",
            headers={"Authorization": f"Bearer {linked.json()['accessToken']}"},
        ).json()
        assert [u["kind"] for u in users] == ["linked"]

    def test_declined_link_creates_second_identity(self, client):
        _sign_up(client, email=MOCK_EMAIL)

        declined = client.post(
            "/linkWithIdentity", json={"accessToken": "aad-token", "link": False}
        )

        users = client.get(
            "/users",
            headers={"Authorization": f"Bearer {declined.json()['accessToken']}"},
        ).json()
        assert [u["kind"] for u in users] == ["local_only", "federated_only"]
