"""Microsoft Graph adapter."""

from .client import (
    GraphIdentityOracle,
    MockGraphIdentityOracle,
    RealGraphIdentityOracle,
)
from .token_cache import InMemoryFederationTokenCache

__all__ = [
    "GraphIdentityOracle",
    "InMemoryFederationTokenCache",
    "MockGraphIdentityOracle",
    "RealGraphIdentityOracle",
]
