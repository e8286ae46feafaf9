"""JWT access token utilities.

Claim names are fixed so that any broker instance sharing the signing key
can verify a token issued by another.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from broker.config import AuthSettings
from broker.util.error import SigningConfigurationError

IDENTITY_ID_CLAIM = "nameidentifier"
DISPLAY_NAME_CLAIM = "name"
EMAIL_CLAIM = "emailaddress"

RESERVED_CLAIMS = frozenset(
    {IDENTITY_ID_CLAIM, DISPLAY_NAME_CLAIM, EMAIL_CLAIM}
    | {"iss", "aud", "iat", "nbf", "exp"}
)


class TokenPayload(BaseModel):
    """Decoded access token payload."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    identity_id: str = Field(alias=IDENTITY_ID_CLAIM)
    display_name: str = Field(alias=DISPLAY_NAME_CLAIM)
    email: str = Field(alias=EMAIL_CLAIM)
    issuer: str = Field(alias="iss")
    not_before: datetime = Field(alias="nbf")
    exp: datetime


class JWTError(Exception):
    """JWT-related error."""

    pass


def _signing_key(settings: AuthSettings) -> str:
    if not settings.jwt_secret:
        raise SigningConfigurationError()
    return settings.jwt_secret


def create_token(
    identity_id: str,
    display_name: str,
    email: str,
    settings: AuthSettings,
    extra_claims: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> str:
    """Create a signed access token for an identity.

    Args:
        identity_id: Identity ID
        display_name: Display name
        email: Email address
        settings: Authentication settings
        extra_claims: Additional claims; may not override the identity claims
        now: Issuance time (defaults to the current UTC time)

    Returns:
        Encoded JWT token

    Raises:
        SigningConfigurationError: If no signing key is configured
    """
    key = _signing_key(settings)
    issued_at = now or datetime.now(timezone.utc)

    payload: dict[str, Any] = {
        key_: value
        for key_, value in (extra_claims or {}).items()
        if key_ not in RESERVED_CLAIMS
    }
    payload.update(
        {
            IDENTITY_ID_CLAIM: identity_id,
            DISPLAY_NAME_CLAIM: display_name,
            EMAIL_CLAIM: email,
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
            "iat": issued_at,
            "nbf": issued_at - timedelta(seconds=settings.not_before_skew_seconds),
            "exp": issued_at + timedelta(minutes=settings.access_token_ttl_minutes),
        }
    )

    return jwt.encode(payload, key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: AuthSettings) -> TokenPayload:
    """Verify and decode an access token.

    Args:
        token: JWT token to verify
        settings: Authentication settings

    Returns:
        Token payload if valid

    Raises:
        JWTError: If token is invalid or expired
        SigningConfigurationError: If no signing key is configured
    """
    key = _signing_key(settings)
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise JWTError("Token has expired")
    except (jwt.InvalidTokenError, ValidationError):
        raise JWTError("Invalid token")
