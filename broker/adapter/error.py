"""Adapter layer errors."""

from broker.domain.error import FederationExchangeError


class AdapterError(Exception):
    """Base adapter error."""

    pass


class ProviderError(AdapterError):
    """External provider error."""

    pass


class GraphExchangeError(ProviderError, FederationExchangeError):
    """Microsoft identity platform or Graph rejected a request.

    Carries the upstream status for logs; the message stays generic so
    provider detail never reaches the caller.
    """

    def __init__(self, operation: str, status_code: int | None = None):
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"Federated identity provider rejected {operation}")
