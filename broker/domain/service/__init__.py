"""Domain services."""

from .base import Service
from .credential_hasher import CredentialHasher
from .federation_service import (
    FederatedIdentityOracle,
    FederationService,
    FederationTokenCache,
)
from .identity_service import IdentityService
from .reconciliation import (
    ReconciliationDecision,
    ReconciliationOutcome,
    apply_decision,
    reconcile,
)
from .token_service import TokenService

__all__ = [
    "CredentialHasher",
    "FederatedIdentityOracle",
    "FederationService",
    "FederationTokenCache",
    "IdentityService",
    "ReconciliationDecision",
    "ReconciliationOutcome",
    "Service",
    "TokenService",
    "apply_decision",
    "reconcile",
]
