"""Repository interfaces for the identity broker domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from broker.domain.repository.identity import IdentityRepository

__all__ = [
    "IdentityRepository",
]
