"""Sign up use case."""

import logfire
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from broker.application.usecase.base import BaseUseCase
from broker.domain.error import DuplicateEmailError
from broker.domain.model.identity import Identity
from broker.domain.service import CredentialHasher, IdentityService
from broker.domain.value import Email
from broker.util.locks import KeyedLock


class SignUpRequest(BaseModel):
    """Local account sign-up request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str
    password: str
    display_name: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return Email(v).root

    @field_validator("password", "display_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class SignUpResponse(BaseModel):
    """Sign-up response. No session is issued; the caller signs in next."""

    id: str


class SignUpUseCase(BaseUseCase):
    """Use case for creating a local email/password identity."""

    def __init__(
        self,
        identity_service: IdentityService,
        credential_hasher: CredentialHasher,
        identity_locks: KeyedLock,
    ) -> None:
        """Initialize sign up use case.

        Args:
            identity_service: Identity domain service
            credential_hasher: Password verifier derivation
            identity_locks: Per-key locks serializing identity writes
        """
        self.identity_service = identity_service
        self.credential_hasher = credential_hasher
        self.identity_locks = identity_locks

    async def execute(self, request: SignUpRequest) -> SignUpResponse:
        """Create a credentialed identity with no refresh tokens.

        Args:
            request: Email, password and display name

        Returns:
            The new identity's id

        Raises:
            DuplicateEmailError: If a credentialed identity already has the email
        """
        email = Email(request.email)

        with logfire.span("sign_up"):
            # Keyed on the email so concurrent sign-ups for it cannot both pass the check
            async with self.identity_locks.hold(("email", email.normalized)):
                existing = await self.identity_service.get_local_by_email(email.root)
                if existing:
                    logfire.warn("Sign-up rejected - email already registered")
                    raise DuplicateEmailError()

                verifier = await self.credential_hasher.compute(
                    request.password, email.root
                )
                identity = await self.identity_service.save(
                    Identity.create_local(
                        display_name=request.display_name,
                        email=email.root,
                        verifier=verifier,
                    )
                )

            logfire.info("Local identity created", identity_id=str(identity.id))
            return SignUpResponse(id=str(identity.id))
