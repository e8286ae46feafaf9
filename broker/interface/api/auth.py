"""Bearer token authentication for protected routes."""

from fastapi import HTTPException, status

from broker.domain.service import TokenService
from broker.util.jwt import JWTError, TokenPayload

_BEARER_PREFIX = "bearer "


def authenticate(
    authorization: str | None, token_service: TokenService
) -> TokenPayload:
    """Verify the ``Authorization: Bearer`` header of a request.

    Args:
        authorization: Raw Authorization header value
        token_service: Token issuer domain service

    Returns:
        Verified access token payload

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid
    """
    if not authorization or not authorization.lower().startswith(_BEARER_PREFIX):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[len(_BEARER_PREFIX) :].strip()
    try:
        return token_service.verify_access_token(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
