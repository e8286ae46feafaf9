"""Identity domain service."""

from datetime import datetime

import logfire

from broker.domain.error import NotFoundError
from broker.domain.model.identity import Identity
from broker.domain.repository.identity import IdentityRepository
from broker.domain.value import FederatedSubject, IdentityId

from .base import Service


class IdentityService(Service):
    """Domain service for identity store operations."""

    def __init__(self, identity_repository: IdentityRepository) -> None:
        """Initialize identity service.

        Args:
            identity_repository: Identity repository
        """
        self.identity_repository = identity_repository

    async def get_by_id(self, identity_id: IdentityId) -> Identity:
        """Get identity by ID.

        Args:
            identity_id: Identity ID

        Returns:
            Identity

        Raises:
            NotFoundError: If identity not found
        """
        with logfire.span("identity_service.get_by_id", identity_id=str(identity_id)):
            identity = await self.identity_repository.find_by_id(identity_id)
            if not identity:
                logfire.warn("Identity not found", identity_id=str(identity_id))
                raise NotFoundError("Identity", str(identity_id))
            return identity

    async def find_by_id(self, identity_id: IdentityId) -> Identity | None:
        """Find identity by ID, returning None when absent."""
        return await self.identity_repository.find_by_id(identity_id)

    async def get_local_by_email(self, email: str) -> Identity | None:
        """Get the identity with a local credential for an email.

        Args:
            email: Email address (case-insensitive)

        Returns:
            Identity if found, None otherwise
        """
        with logfire.span("identity_service.get_local_by_email"):
            identity = await self.identity_repository.find_local_by_email(email)
            logfire.info("Local identity lookup", found=identity is not None)
            return identity

    async def get_all_by_email(self, email: str) -> list[Identity]:
        """Get every identity sharing an email.

        Args:
            email: Email address (case-insensitive)

        Returns:
            List of identities (may be empty)
        """
        with logfire.span("identity_service.get_all_by_email"):
            identities = await self.identity_repository.find_all_by_email(email)
            logfire.info("Identities retrieved by email", count=len(identities))
            return identities

    async def get_by_federated_subject(
        self, subject: FederatedSubject
    ) -> Identity | None:
        """Get the identity bound to a federated subject.

        Args:
            subject: Federated subject and issuer

        Returns:
            Identity if found, None otherwise
        """
        with logfire.span(
            "identity_service.get_by_federated_subject",
            subject_id=subject.subject_id,
            issuer_id=subject.issuer_id,
        ):
            identity = await self.identity_repository.find_by_federated_subject(
                subject
            )
            if identity:
                logfire.info(
                    "Federated identity found",
                    identity_id=str(identity.id),
                    issuer_id=subject.issuer_id,
                )
            else:
                logfire.info(
                    "Federated identity not found", issuer_id=subject.issuer_id
                )
            return identity

    async def get_by_refresh_token(self, token: str, now: datetime) -> Identity | None:
        """Get the identity holding a live refresh token.

        Args:
            token: Refresh token value
            now: Current time

        Returns:
            Identity if the token is live, None otherwise
        """
        with logfire.span("identity_service.get_by_refresh_token"):
            identity = await self.identity_repository.find_by_refresh_token(token, now)
            if identity is None:
                logfire.warn("Refresh token not found or expired")
            return identity

    async def list_all(self) -> list[Identity]:
        """List all identities in store order."""
        with logfire.span("identity_service.list_all"):
            identities = await self.identity_repository.list_all()
            logfire.info("Identities listed", count=len(identities))
            return identities

    async def save(self, identity: Identity) -> Identity:
        """Save identity (create or update).

        Args:
            identity: Identity to save

        Returns:
            Saved identity with its new version

        Raises:
            ConcurrentModificationError: If the identity changed since it was read
        """
        with logfire.span(
            "identity_service.save",
            identity_id=str(identity.id),
            kind=identity.kind.value,
        ):
            saved = await self.identity_repository.save(identity)
            logfire.info(
                "Identity saved",
                identity_id=str(saved.id),
                kind=saved.kind.value,
                version=saved.version,
                refresh_tokens=len(saved.refresh_tokens),
            )
            return saved

    async def delete(self, identity_id: IdentityId) -> None:
        """Delete identity and its refresh tokens.

        Args:
            identity_id: Identity to delete
        """
        with logfire.span("identity_service.delete", identity_id=str(identity_id)):
            await self.identity_repository.delete(identity_id)
            logfire.info("Identity deleted", identity_id=str(identity_id))
