"""Domain value objects for the identity broker."""

from broker.domain.value.identifiers import IdentityId
from broker.domain.value.types import (
    Email,
    FederatedExchange,
    FederatedProfile,
    FederatedSubject,
    IdentityKind,
    normalize_email,
)

__all__ = [
    # Identifiers
    "IdentityId",
    # Types
    "Email",
    "FederatedExchange",
    "FederatedProfile",
    "FederatedSubject",
    "IdentityKind",
    "normalize_email",
]
