"""Microsoft Graph infrastructure providers."""

from dishka import Scope, provide

from broker.adapter.graph.client import GraphIdentityOracle, RealGraphIdentityOracle
from broker.config import FederationSettings
from broker.util.di.base import ProviderBase

_PLACEHOLDER = "CHANGE_ME_IN_PRODUCTION"


class GraphProvider(ProviderBase):
    """Graph component base."""

    __mock_component__ = "graph"


class ProdGraphProvider(GraphProvider):
    """Production Graph provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_graph_identity_oracle(
        self, federation: FederationSettings
    ) -> GraphIdentityOracle:
        """Provide Graph identity oracle.

        Returns:
            On-behalf-of exchange client for the configured tenant

        Raises:
            ValueError: If the application credentials are not configured
        """
        if not federation.client_id or federation.client_id == _PLACEHOLDER:
            raise ValueError("Federation client ID must be configured")
        if not federation.client_secret or federation.client_secret == _PLACEHOLDER:
            raise ValueError("Federation client secret must be configured")

        return RealGraphIdentityOracle(
            client_id=federation.client_id,
            client_secret=federation.client_secret,
            token_url=federation.token_url,
            graph_url=federation.graph_url,
            scopes=federation.scopes,
            timeout=federation.http_timeout_seconds,
        )
