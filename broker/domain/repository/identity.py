"""Identity repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from broker.domain.model.identity import Identity
from broker.domain.value import FederatedSubject, IdentityId


class IdentityRepository(ABC):
    """Repository for the Identity aggregate.

    Implementations must:
    - keep identities in insertion order for ``list_all`` and email lookups
    - index refresh tokens by value rather than scanning identities
    - reject a ``save`` whose ``version`` is stale with ConcurrentModificationError
    - reject a second holder of a federated subject with InvariantViolationError
    - reject a second credentialed identity for an email with DuplicateEmailError
    """

    @abstractmethod
    async def find_by_id(self, identity_id: IdentityId) -> Optional[Identity]:
        """Find an identity by ID.

        Args:
            identity_id: The identity's unique identifier

        Returns:
            The identity if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_local_by_email(self, email: str) -> Optional[Identity]:
        """Find the identity holding a local credential for an email.

        Matching is case-insensitive. Identities without a local credential
        are never returned.

        Args:
            email: Email address

        Returns:
            The first matching credentialed identity, None otherwise
        """
        pass

    @abstractmethod
    async def find_all_by_email(self, email: str) -> list[Identity]:
        """Find every identity with an email, credentialed or not.

        Args:
            email: Email address (case-insensitive)

        Returns:
            Matching identities in insertion order (may be empty)
        """
        pass

    @abstractmethod
    async def find_by_federated_subject(
        self, subject: FederatedSubject
    ) -> Optional[Identity]:
        """Find the identity bound to a federated subject/issuer pair.

        Args:
            subject: Federated subject and issuer ids

        Returns:
            The identity if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_refresh_token(
        self, token: str, now: datetime
    ) -> Optional[Identity]:
        """Find the identity holding a live refresh token.

        A token whose expiry is not strictly after ``now`` is treated as
        absent and may be pruned from its owner.

        Args:
            token: Refresh token value
            now: Current time

        Returns:
            The owning identity if the token is live, None otherwise
        """
        pass

    @abstractmethod
    async def list_all(self) -> list[Identity]:
        """List every identity in insertion order."""
        pass

    @abstractmethod
    async def save(self, identity: Identity) -> Identity:
        """Save an identity (create or update).

        Args:
            identity: The identity to save, carrying the version it was read at

        Returns:
            The saved identity with its new version
        """
        pass

    @abstractmethod
    async def delete(self, identity_id: IdentityId) -> None:
        """Delete an identity together with all of its refresh tokens.

        Args:
            identity_id: The identity to delete
        """
        pass
