"""Refresh login use case."""

import logfire
from pydantic import BaseModel

from broker.application.usecase.auth.session import LoginResult, SessionIssuer
from broker.application.usecase.base import BaseUseCase
from broker.domain.error import TokenNotFoundError
from broker.domain.service import IdentityService, TokenService
from broker.util.locks import KeyedLock


class RefreshLoginRequest(BaseModel):
    """Refresh token rotation request."""

    token: str


class RefreshLoginUseCase(BaseUseCase):
    """Use case for rotating a refresh token into a fresh session."""

    def __init__(
        self,
        identity_service: IdentityService,
        token_service: TokenService,
        session_issuer: SessionIssuer,
        identity_locks: KeyedLock,
    ) -> None:
        """Initialize refresh login use case.

        Args:
            identity_service: Identity domain service
            token_service: Token issuer domain service
            session_issuer: Issues and persists the session
            identity_locks: Per-key locks serializing identity writes
        """
        self.identity_service = identity_service
        self.token_service = token_service
        self.session_issuer = session_issuer
        self.identity_locks = identity_locks

    async def execute(self, request: RefreshLoginRequest) -> LoginResult:
        """Consume the presented refresh token and issue a new session.

        The consumed token is removed in the same write that attaches its
        replacement, so it can never be presented successfully again.

        Args:
            request: Refresh token to rotate

        Returns:
            Login result with a new access token and refresh token

        Raises:
            TokenNotFoundError: If no identity holds the token or it has expired
        """
        with logfire.span("refresh_login"):
            owner = await self.identity_service.get_by_refresh_token(
                request.token, self.token_service.now()
            )
            if owner is None:
                raise TokenNotFoundError()

            async with self.identity_locks.hold(owner.id):
                # A racing rotation may have consumed the token while we waited
                current = await self.identity_service.find_by_id(owner.id)
                if current is None:
                    raise TokenNotFoundError()

                consumed = current.consume_refresh_token(
                    request.token, self.token_service.now()
                )
                saved, result = await self.session_issuer.issue(consumed)

            logfire.info("Refresh token rotated", identity_id=str(saved.id))
            return result
