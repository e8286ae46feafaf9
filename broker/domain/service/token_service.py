"""Token issuer domain service."""

import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import logfire

from broker.config import AuthSettings
from broker.domain.model.refresh_token import RefreshToken
from broker.util.jwt import TokenPayload, create_token, verify_token

from .base import Service


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


class TokenService(Service):
    """Mints signed access tokens and opaque refresh tokens."""

    def __init__(
        self,
        auth_settings: AuthSettings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize token service.

        Args:
            auth_settings: Authentication settings (signing key, lifetimes)
            clock: Source of the current time
        """
        self.auth_settings = auth_settings
        self.clock = clock

    def now(self) -> datetime:
        """Current time according to the service clock."""
        return self.clock()

    def issue_access_token(
        self,
        identity_id: str,
        display_name: str,
        email: str,
        extra_claims: dict[str, Any] | None = None,
    ) -> str:
        """Issue a signed access token for an identity.

        Valid for ``access_token_ttl_minutes`` from issuance, with a backdated
        not-before to tolerate clock skew.

        Args:
            identity_id: Identity ID
            display_name: Display name
            email: Email
            extra_claims: Additional claims to embed

        Returns:
            Encoded JWT

        Raises:
            SigningConfigurationError: If no signing key is configured
        """
        with logfire.span("token_service.issue_access_token", identity_id=identity_id):
            token = create_token(
                identity_id,
                display_name,
                email,
                self.auth_settings,
                extra_claims=extra_claims,
                now=self.now(),
            )
            logfire.info("Access token issued", identity_id=identity_id)
            return token

    def issue_refresh_token(self) -> RefreshToken:
        """Generate a new refresh token, not yet attached to any identity.

        Returns:
            Random token expiring ``refresh_token_ttl_minutes`` from now
        """
        return RefreshToken(
            token=secrets.token_urlsafe(32),
            absolute_expiry=self.now()
            + timedelta(minutes=self.auth_settings.refresh_token_ttl_minutes),
        )

    def verify_access_token(self, token: str) -> TokenPayload:
        """Verify an access token and extract its payload.

        Args:
            token: Encoded JWT

        Returns:
            Token payload

        Raises:
            JWTError: If token is invalid or expired
            SigningConfigurationError: If no signing key is configured
        """
        with logfire.span("token_service.verify_access_token"):
            payload = verify_token(token, self.auth_settings)
            logfire.debug("Access token verified", identity_id=payload.identity_id)
            return payload
