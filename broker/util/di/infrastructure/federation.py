"""Federation infrastructure provider."""

from dishka import Scope, provide

from broker.adapter.graph.client import GraphIdentityOracle
from broker.adapter.graph.token_cache import InMemoryFederationTokenCache
from broker.config import FederationSettings
from broker.domain.service import FederatedIdentityOracle, FederationTokenCache
from broker.util.di.base import ProviderBase


class FederationAggregatorProvider(ProviderBase):
    """Exposes the configured provider client and token cache to the domain."""

    scope = Scope.APP

    @provide(scope=Scope.APP)
    def get_federated_identity_oracle(
        self, graph_oracle: GraphIdentityOracle
    ) -> FederatedIdentityOracle:
        """Provide the federated identity oracle (Graph, real or mock)."""
        return graph_oracle

    @provide(scope=Scope.APP)
    def get_federation_token_cache(
        self, federation: FederationSettings
    ) -> FederationTokenCache:
        """Provide the per-identity federation token cache."""
        return InMemoryFederationTokenCache(
            ttl_seconds=federation.token_cache_ttl_seconds,
            leeway_seconds=federation.token_cache_leeway_seconds,
        )
