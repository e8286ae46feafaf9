"""Microsoft Graph identity oracle.

Exchanges a client's access token for a Graph-scoped token using the
OAuth 2.0 on-behalf-of flow, then reads the caller's profile from Graph.
"""

from typing import Any

import httpx
import logfire

from broker.adapter.error import GraphExchangeError
from broker.domain.service.federation_service import FederatedIdentityOracle
from broker.domain.value import FederatedExchange, FederatedProfile, FederatedSubject

OBO_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class GraphIdentityOracle(FederatedIdentityOracle):
    """Base class for Graph identity oracles.

    Provides type distinction for dependency injection.
    """

    pass


class RealGraphIdentityOracle(GraphIdentityOracle):
    """Graph identity oracle backed by the Microsoft identity platform."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str,
        graph_url: str,
        scopes: list[str],
        timeout: float = 30.0,
    ) -> None:
        """Initialize Graph identity oracle.

        Args:
            client_id: Application (client) ID registered with the tenant
            client_secret: Application client secret
            token_url: OAuth 2.0 token endpoint
            graph_url: Graph API base URL
            scopes: Graph scopes requested on behalf of the caller
            timeout: HTTP timeout in seconds
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.graph_url = graph_url.rstrip("/")
        self.scopes = scopes
        self.timeout = timeout

    async def exchange(self, assertion: str) -> FederatedExchange:
        """Exchange an assertion for a Graph token and read the caller's profile.

        Raises:
            GraphExchangeError: If the token endpoint or Graph rejects the request
        """
        access_token = await self._acquire_on_behalf_of(assertion)
        profile = await self.get_profile(access_token)
        return FederatedExchange(access_token=access_token, profile=profile)

    async def get_profile(self, access_token: str) -> FederatedProfile:
        """Read the caller's profile and tenant from Graph.

        Raises:
            GraphExchangeError: If Graph rejects the token
        """
        me = await self._graph_get("me", access_token)
        organization = await self._graph_get("organization", access_token)

        tenants = organization.get("value") or []
        if not tenants or not tenants[0].get("id"):
            logfire.error("Graph organization response has no tenant")
            raise GraphExchangeError("organization lookup")

        email = me.get("mail") or me.get("userPrincipalName")
        if not me.get("id") or not email:
            logfire.error("Graph profile is missing id or email")
            raise GraphExchangeError("profile lookup")

        profile = FederatedProfile(
            subject=FederatedSubject(subject_id=me["id"], issuer_id=tenants[0]["id"]),
            display_name=me.get("displayName") or email,
            email=email,
        )

        logfire.info(
            "Graph profile retrieved",
            subject_id=profile.subject.subject_id,
            issuer_id=profile.subject.issuer_id,
        )

        return profile

    async def _acquire_on_behalf_of(self, assertion: str) -> str:
        """Exchange the caller's token for a Graph-scoped token.

        Raises:
            GraphExchangeError: If the token exchange fails
        """
        data = {
            "grant_type": OBO_GRANT_TYPE,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "assertion": assertion,
            "scope": " ".join(self.scopes),
            "requested_token_use": "on_behalf_of",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.token_url,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logfire.error("On-behalf-of token exchange HTTP error", error=str(e))
            raise GraphExchangeError("token exchange") from e

        if response.status_code != 200:
            logfire.error(
                "On-behalf-of token exchange failed",
                status_code=response.status_code,
                error=_error_code(response),
            )
            raise GraphExchangeError("token exchange", response.status_code)

        access_token = response.json().get("access_token")
        if not access_token:
            raise GraphExchangeError("token exchange", response.status_code)
        return access_token

    async def _graph_get(self, path: str, access_token: str) -> dict[str, Any]:
        """GET a Graph resource with a Graph-scoped token.

        Raises:
            GraphExchangeError: If the request fails
        """
        url = f"{self.graph_url}/{path}"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    url,
                    headers={"Authorization": f"Bearer {access_token}"},
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logfire.error("Graph HTTP error", path=path, error=str(e))
            raise GraphExchangeError(f"{path} lookup") from e

        if response.status_code != 200:
            logfire.error(
                "Graph request failed",
                path=path,
                status_code=response.status_code,
                error=_error_code(response),
            )
            raise GraphExchangeError(f"{path} lookup", response.status_code)

        return response.json()


def _error_code(response: httpx.Response) -> str | None:
    """Extract the OAuth / Graph error code without echoing descriptions."""
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("code")
    return error


class MockGraphIdentityOracle(GraphIdentityOracle):
    """Mock Graph identity oracle for testing.

    Assertions resolve to registered profiles; any assertion is accepted as
    the default profile unless ``strict`` is set. Exchanged tokens are
    ``graph:<assertion>`` and resolve back to the same profile.
    """

    DEFAULT_PROFILE = FederatedProfile(
        subject=FederatedSubject(
            subject_id="00000000-0000-0000-0000-00000000aad1",
            issuer_id="11111111-1111-1111-1111-111111111111",
        ),
        display_name="Mock Graph User",
        email="mock.user@contoso.example",
    )

    def __init__(self, strict: bool = False):
        """Initialize mock oracle without real tenant configuration."""
        self.strict = strict
        self._profiles: dict[str, FederatedProfile] = {}
        self._revoked: set[str] = set()
        self.exchange_calls = 0

    def register(self, assertion: str, profile: FederatedProfile) -> None:
        """Make an assertion resolve to a profile."""
        self._profiles[assertion] = profile

    def revoke(self, access_token: str) -> None:
        """Make a previously issued Graph token fail profile lookups."""
        self._revoked.add(access_token)

    async def exchange(self, assertion: str) -> FederatedExchange:
        """Return a mock Graph token and the profile for an assertion.

        Raises:
            GraphExchangeError: If the assertion is rejected
        """
        self.exchange_calls += 1
        profile = self._resolve(assertion)
        return FederatedExchange(access_token=f"graph:{assertion}", profile=profile)

    async def get_profile(self, access_token: str) -> FederatedProfile:
        """Return the profile behind a mock Graph token.

        Raises:
            GraphExchangeError: If the token was not issued by this mock or was revoked
        """
        prefix, _, assertion = access_token.partition(":")
        if prefix != "graph" or access_token in self._revoked:
            raise GraphExchangeError("me lookup", 401)
        return self._resolve(assertion)

    def _resolve(self, assertion: str) -> FederatedProfile:
        if not assertion or assertion == "invalid":
            raise GraphExchangeError("token exchange", 400)
        if assertion in self._profiles:
            return self._profiles[assertion]
        if self.strict:
            raise GraphExchangeError("token exchange", 400)
        return self.DEFAULT_PROFILE
