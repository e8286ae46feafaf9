"""Session issuance shared by every login flow."""

from typing import Any

import logfire
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from broker.domain.model.identity import Identity
from broker.domain.service import IdentityService, TokenService


class LoginResult(BaseModel):
    """Uniform result of a login flow.

    Session fields are absent when the caller must first confirm an
    account-linking decision (``require_link``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    display_name: str
    access_token: str | None = None
    refresh_token: str | None = None
    token_expiry: int | None = None  # Refresh token expiry, epoch seconds
    graph_access_token: str | None = None
    require_link: bool = False


class SessionIssuer:
    """Issues a session for an identity the caller is allowed to sign in as.

    Callers hold the identity's lock and pass the freshly read (or newly
    built) identity; the issuer attaches a new refresh token and persists it.
    """

    def __init__(
        self, token_service: TokenService, identity_service: IdentityService
    ) -> None:
        """Initialize session issuer.

        Args:
            token_service: Token issuer domain service
            identity_service: Identity domain service
        """
        self.token_service = token_service
        self.identity_service = identity_service

    async def issue(
        self,
        identity: Identity,
        extra_claims: dict[str, Any] | None = None,
        graph_access_token: str | None = None,
    ) -> tuple[Identity, LoginResult]:
        """Sign in ``identity``.

        The access token is signed before anything is written, so a missing
        signing key leaves the store untouched.

        Args:
            identity: Identity to sign in, as last read from the store
            extra_claims: Additional access token claims
            graph_access_token: Federation-scoped token to hand back to the caller

        Returns:
            Saved identity and the login result

        Raises:
            SigningConfigurationError: If no signing key is configured
            ConcurrentModificationError: If the identity changed since it was read
        """
        access_token = self.token_service.issue_access_token(
            identity_id=str(identity.id),
            display_name=identity.display_name,
            email=identity.email,
            extra_claims=extra_claims,
        )

        refresh_token = self.token_service.issue_refresh_token()
        updated = identity.prune_expired_tokens(
            self.token_service.now()
        ).attach_refresh_token(refresh_token)
        saved = await self.identity_service.save(updated)

        logfire.info(
            "Session issued",
            identity_id=str(saved.id),
            kind=saved.kind.value,
            active_refresh_tokens=len(saved.refresh_tokens),
        )

        return saved, LoginResult(
            display_name=saved.display_name,
            access_token=access_token,
            refresh_token=refresh_token.token,
            token_expiry=refresh_token.expiry_epoch_seconds,
            graph_access_token=graph_access_token,
        )
