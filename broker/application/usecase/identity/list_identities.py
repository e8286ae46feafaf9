"""List identities use case."""

from pydantic import BaseModel

from broker.application.usecase.base import BaseUseCase
from broker.application.usecase.identity.summary import IdentitySummary
from broker.domain.service import IdentityService


class ListIdentitiesRequest(BaseModel):
    """List identities request."""

    pass


class ListIdentitiesUseCase(BaseUseCase):
    """Use case for listing every identity in store order."""

    def __init__(self, identity_service: IdentityService) -> None:
        """Initialize list identities use case.

        Args:
            identity_service: Identity domain service
        """
        self.identity_service = identity_service

    async def execute(self, request: ListIdentitiesRequest) -> list[IdentitySummary]:
        identities = await self.identity_service.list_all()
        return [IdentitySummary.from_identity(identity) for identity in identities]
