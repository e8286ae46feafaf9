"""Domain layer DI providers."""

from dishka import Scope, provide

from broker.config import AuthSettings
from broker.domain.repository import IdentityRepository
from broker.domain.service import (
    CredentialHasher,
    FederatedIdentityOracle,
    FederationService,
    FederationTokenCache,
    IdentityService,
    TokenService,
)
from broker.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Services over the identity store are REQUEST-scoped to align with the
    repository/session lifecycle; stateless services live for the app.
    """

    scope = Scope.REQUEST

    @provide(scope=Scope.APP)
    def get_credential_hasher(self, auth_settings: AuthSettings) -> CredentialHasher:
        """Provide credential hasher."""
        return CredentialHasher(
            iterations=auth_settings.password_hash_iterations,
            length=auth_settings.password_hash_length,
        )

    @provide(scope=Scope.APP)
    def get_token_service(self, auth_settings: AuthSettings) -> TokenService:
        """Provide token issuer domain service."""
        return TokenService(auth_settings=auth_settings)

    @provide(scope=Scope.APP)
    def get_federation_service(
        self,
        oracle: FederatedIdentityOracle,
        token_cache: FederationTokenCache,
    ) -> FederationService:
        """Provide federated identity domain service."""
        return FederationService(oracle=oracle, token_cache=token_cache)

    @provide
    def get_identity_service(
        self, identity_repository: IdentityRepository
    ) -> IdentityService:
        """Provide identity domain service."""
        return IdentityService(identity_repository=identity_repository)
