"""Get profile use case."""

from uuid import UUID

import logfire
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from broker.application.usecase.base import BaseUseCase
from broker.application.usecase.identity.summary import IdentitySummary
from broker.domain.service import FederationService, IdentityService
from broker.domain.value import FederatedProfile, IdentityId


class GetProfileRequest(BaseModel):
    """Get profile request for the signed-in identity."""

    identity_id: str  # From the verified access token
    assertion: str | None = None  # Optional fresh federated assertion


class FederatedProfileInfo(BaseModel):
    """Federated profile as read from the provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subject_id: str
    issuer_id: str
    display_name: str
    email: str

    @classmethod
    def from_profile(cls, profile: FederatedProfile) -> "FederatedProfileInfo":
        return cls(
            subject_id=profile.subject.subject_id,
            issuer_id=profile.subject.issuer_id,
            display_name=profile.display_name,
            email=profile.email,
        )


class GetProfileResponse(BaseModel):
    """Local identity plus, when available, the federated profile."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    local_identity: IdentitySummary
    federated_profile: FederatedProfileInfo | None = None


class GetProfileUseCase(BaseUseCase):
    """Use case for reading the signed-in identity's profile."""

    def __init__(
        self,
        identity_service: IdentityService,
        federation_service: FederationService,
    ) -> None:
        """Initialize get profile use case.

        Args:
            identity_service: Identity domain service
            federation_service: Federated identity domain service
        """
        self.identity_service = identity_service
        self.federation_service = federation_service

    async def execute(self, request: GetProfileRequest) -> GetProfileResponse:
        """Load the local identity and its federated profile.

        The federated profile is read with the supplied assertion, or else
        for federation-linked identities with the token cached at sign-in.

        Args:
            request: Signed-in identity and optional assertion

        Returns:
            Profile response

        Raises:
            NotFoundError: If the identity no longer exists
            FederationExchangeError: If a supplied assertion is rejected
        """
        identity_id = IdentityId(UUID(request.identity_id))

        with logfire.span("get_profile", identity_id=str(identity_id)):
            identity = await self.identity_service.get_by_id(identity_id)

            federated_profile = None
            if request.assertion or identity.federation_linked:
                profile = await self.federation_service.get_profile(
                    identity_id,
                    request.assertion,
                    bound_subject=identity.federated_subject,
                )
                if profile is not None:
                    federated_profile = FederatedProfileInfo.from_profile(profile)

            return GetProfileResponse(
                local_identity=IdentitySummary.from_identity(identity),
                federated_profile=federated_profile,
            )
