"""Local login use case."""

import logfire
from pydantic import BaseModel

from broker.application.usecase.auth.session import LoginResult, SessionIssuer
from broker.application.usecase.base import BaseUseCase
from broker.domain.error import InvalidCredentialsError
from broker.domain.service import CredentialHasher, IdentityService
from broker.util.locks import KeyedLock


class LoginLocalRequest(BaseModel):
    """Email/password login request."""

    email: str
    password: str


class LoginLocalUseCase(BaseUseCase):
    """Use case for signing in with a local credential."""

    def __init__(
        self,
        identity_service: IdentityService,
        credential_hasher: CredentialHasher,
        session_issuer: SessionIssuer,
        identity_locks: KeyedLock,
    ) -> None:
        """Initialize local login use case.

        Args:
            identity_service: Identity domain service
            credential_hasher: Password verifier derivation
            session_issuer: Issues and persists the session
            identity_locks: Per-key locks serializing identity writes
        """
        self.identity_service = identity_service
        self.credential_hasher = credential_hasher
        self.session_issuer = session_issuer
        self.identity_locks = identity_locks

    async def execute(self, request: LoginLocalRequest) -> LoginResult:
        """Verify the credential and issue a session.

        Unknown email and wrong password fail identically and leave the
        store untouched.

        Args:
            request: Email and password

        Returns:
            Login result with access token, refresh token and expiry

        Raises:
            ValueError: If email or password is blank
            InvalidCredentialsError: If the credential does not match
        """
        if not request.email.strip() or not request.password:
            raise ValueError("You must specify both email and password")

        with logfire.span("login_local"):
            identity = await self.identity_service.get_local_by_email(request.email)
            if identity is None or identity.verifier is None:
                logfire.warn("Local login rejected")
                raise InvalidCredentialsError()

            matches = await self.credential_hasher.verify(
                request.password, identity.email, identity.verifier
            )
            if not matches:
                logfire.warn("Local login rejected")
                raise InvalidCredentialsError()

            async with self.identity_locks.hold(identity.id):
                current = await self.identity_service.find_by_id(identity.id)
                # Deleted or re-credentialed while the password was being checked
                if current is None or current.verifier != identity.verifier:
                    raise InvalidCredentialsError()

                saved, result = await self.session_issuer.issue(current)

            logfire.info("Local login succeeded", identity_id=str(saved.id))
            return result
