"""Domain model entities for the identity broker."""

from broker.domain.model.identity import (
    FederatedBinding,
    Identity,
    IdentityBinding,
    LinkedBinding,
    LocalBinding,
)
from broker.domain.model.refresh_token import RefreshToken

__all__ = [
    "FederatedBinding",
    "Identity",
    "IdentityBinding",
    "LinkedBinding",
    "LocalBinding",
    "RefreshToken",
]
