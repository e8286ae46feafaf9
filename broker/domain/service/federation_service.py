"""Federated identity domain service."""

from typing import Protocol

import logfire

from broker.domain.error import FederationExchangeError
from broker.domain.value import (
    FederatedExchange,
    FederatedProfile,
    FederatedSubject,
    IdentityId,
)

from .base import Service


class FederatedIdentityOracle:
    """Generic interface to a federated identity provider."""

    async def exchange(self, assertion: str) -> FederatedExchange:
        """Exchange a caller-supplied assertion for a federation-scoped token and profile.

        Args:
            assertion: Access token the client obtained from the provider

        Returns:
            Federation-scoped access token and the caller's profile

        Raises:
            FederationExchangeError: If the provider rejects the assertion
        """
        raise NotImplementedError

    async def get_profile(self, access_token: str) -> FederatedProfile:
        """Read the profile behind a federation-scoped token.

        Args:
            access_token: Token previously returned by ``exchange``

        Returns:
            Federated profile

        Raises:
            FederationExchangeError: If the provider rejects the token
        """
        raise NotImplementedError


class FederationTokenCache(Protocol):
    """Federation-scoped tokens cached per identity, each with its own lifetime."""

    async def get(self, identity_id: IdentityId) -> str | None:
        """Return the cached token if present and not expired."""
        ...

    async def put(self, identity_id: IdentityId, access_token: str) -> None:
        """Cache a token for an identity, replacing any previous one."""
        ...

    async def invalidate(self, identity_id: IdentityId) -> None:
        """Drop the cached token for an identity."""
        ...


class FederationService(Service):
    """Domain service for federated identity operations."""

    def __init__(
        self, oracle: FederatedIdentityOracle, token_cache: FederationTokenCache
    ) -> None:
        """Initialize federation service.

        Args:
            oracle: Federated identity provider client
            token_cache: Per-identity federation token cache
        """
        self.oracle = oracle
        self.token_cache = token_cache

    async def exchange(self, assertion: str) -> FederatedExchange:
        """Exchange an assertion with the federated provider.

        Raises:
            FederationExchangeError: If the provider rejects the assertion
        """
        with logfire.span("federation_service.exchange"):
            try:
                exchange = await self.oracle.exchange(assertion)
            except FederationExchangeError as e:
                logfire.warn("Federated exchange rejected", error=str(e))
                raise
            logfire.info(
                "Federated exchange completed",
                subject_id=exchange.profile.subject.subject_id,
                issuer_id=exchange.profile.subject.issuer_id,
            )
            return exchange

    async def remember_token(self, identity_id: IdentityId, access_token: str) -> None:
        """Cache the federation-scoped token for a signed-in identity."""
        await self.token_cache.put(identity_id, access_token)

    async def forget(self, identity_id: IdentityId) -> None:
        """Invalidate the cached federation token for an identity."""
        await self.token_cache.invalidate(identity_id)
        logfire.info("Federation token invalidated", identity_id=str(identity_id))

    async def get_profile(
        self,
        identity_id: IdentityId,
        assertion: str | None = None,
        bound_subject: FederatedSubject | None = None,
    ) -> FederatedProfile | None:
        """Read the federated profile for a signed-in identity.

        A supplied assertion is exchanged afresh; its token is cached only
        when it belongs to ``bound_subject``. Otherwise the cached token is
        used. A cached token the provider no longer accepts is dropped.

        Args:
            identity_id: Signed-in identity
            assertion: Optional new assertion from the client
            bound_subject: Federated subject the identity is linked to

        Returns:
            Federated profile, or None if there is nothing to query with

        Raises:
            FederationExchangeError: If a supplied assertion is rejected
        """
        with logfire.span(
            "federation_service.get_profile",
            identity_id=str(identity_id),
            has_assertion=bool(assertion),
        ):
            if assertion:
                exchange = await self.exchange(assertion)
                if (
                    bound_subject is not None
                    and exchange.profile.subject == bound_subject
                ):
                    await self.remember_token(identity_id, exchange.access_token)
                else:
                    logfire.info(
                        "Federation token not cached for another subject",
                        identity_id=str(identity_id),
                    )
                return exchange.profile

            cached = await self.token_cache.get(identity_id)
            if cached is None:
                return None

            try:
                return await self.oracle.get_profile(cached)
            except FederationExchangeError as e:
                logfire.warn(
                    "Cached federation token rejected",
                    identity_id=str(identity_id),
                    error=str(e),
                )
                await self.forget(identity_id)
                return None
