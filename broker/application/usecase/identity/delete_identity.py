"""Delete identity use case."""

import logfire
from pydantic import BaseModel

from broker.application.usecase.base import BaseUseCase
from broker.domain.service import FederationService, IdentityService
from broker.util.locks import KeyedLock


class DeleteIdentityRequest(BaseModel):
    """Delete identities by email request."""

    email: str


class DeleteIdentityResponse(BaseModel):
    """Delete identities response."""

    deleted: int


class DeleteIdentityUseCase(BaseUseCase):
    """Use case for administratively deleting identities by email."""

    def __init__(
        self,
        identity_service: IdentityService,
        federation_service: FederationService,
        identity_locks: KeyedLock,
    ) -> None:
        """Initialize delete identity use case.

        Args:
            identity_service: Identity domain service
            federation_service: Federated identity domain service
            identity_locks: Per-key locks serializing identity writes
        """
        self.identity_service = identity_service
        self.federation_service = federation_service
        self.identity_locks = identity_locks

    async def execute(self, request: DeleteIdentityRequest) -> DeleteIdentityResponse:
        """Delete every identity whose email matches, case-insensitively.

        Each identity's refresh tokens go with it and its cached federation
        token is invalidated. Matching nothing is not an error.

        Args:
            request: Email to delete

        Returns:
            Number of identities deleted
        """
        with logfire.span("delete_identity"):
            identities = await self.identity_service.get_all_by_email(request.email)

            for identity in identities:
                async with self.identity_locks.hold(identity.id):
                    await self.identity_service.delete(identity.id)
                await self.federation_service.forget(identity.id)

            logfire.info("Identities deleted by email", count=len(identities))
            return DeleteIdentityResponse(deleted=len(identities))
