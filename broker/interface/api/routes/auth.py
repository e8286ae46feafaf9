"""Session routes: sign-up, local login, refresh and federated login."""

import logging

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from broker.application.usecase.auth import (
    FederatedLoginUseCase,
    LoginLocalUseCase,
    LoginResult,
    RefreshLoginUseCase,
    SignUpUseCase,
)
from broker.application.usecase.auth.federated_login import FederatedLoginRequest
from broker.application.usecase.auth.login_local import LoginLocalRequest
from broker.application.usecase.auth.refresh_login import RefreshLoginRequest
from broker.application.usecase.auth.sign_up import SignUpRequest
from broker.domain.error import (
    DuplicateEmailError,
    InvalidCredentialsError,
    TokenNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"], route_class=DishkaRoute)


class LoginWithTokenRequest(BaseModel):
    """Federated login with an assertion from the identity provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str = Field(min_length=1)


class LinkWithIdentityRequest(BaseModel):
    """Federated login after the link prompt, carrying the user's answer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str = Field(min_length=1)
    link: bool


@router.post("/signup")
async def sign_up(
    request: SignUpRequest,
    sign_up_use_case: FromDishka[SignUpUseCase],
) -> None:
    """Create a local email/password account.

    No session is issued; the client signs in with ``/loginLocal`` next.

    Example:
        POST /signup
        {"email": "ada@example.com", "password": "...", "displayName": "Ada"}
    """
    try:
        await sign_up_use_case.execute(request)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/loginLocal", response_model=LoginResult)
async def login_local(
    request: LoginLocalRequest,
    login_local_use_case: FromDishka[LoginLocalUseCase],
) -> LoginResult:
    """Sign in with email and password.

    Example:
        POST /loginLocal
        {"email": "ada@example.com", "password": "..."}

        Response:
        {
            "displayName": "Ada",
            "accessToken": "eyJ...",
            "refreshToken": "q1Xo...",
            "tokenExpiry": 1760000000,
            "graphAccessToken": null,
            "requireLink": false
        }
    """
    try:
        return await login_local_use_case.execute(request)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/refreshToken", response_model=LoginResult)
async def refresh_token(
    request: RefreshLoginRequest,
    refresh_login_use_case: FromDishka[RefreshLoginUseCase],
) -> LoginResult:
    """Exchange a refresh token for a new session.

    The presented token is consumed; only the returned one is valid afterwards.
    """
    try:
        return await refresh_login_use_case.execute(request)
    except TokenNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/loginWithToken", response_model=LoginResult)
async def login_with_token(
    request: LoginWithTokenRequest,
    federated_login_use_case: FromDishka[FederatedLoginUseCase],
) -> LoginResult:
    """Sign in with a federated assertion.

    When a local account with the same email exists and has not been linked,
    the response has ``requireLink: true`` and no session; the client asks
    the user and calls ``/linkWithIdentity``.
    """
    logger.info("Federated login requested")
    return await federated_login_use_case.execute(
        FederatedLoginRequest(assertion=request.access_token)
    )


@router.post("/linkWithIdentity", response_model=LoginResult)
async def link_with_identity(
    request: LinkWithIdentityRequest,
    federated_login_use_case: FromDishka[FederatedLoginUseCase],
) -> LoginResult:
    """Sign in with a federated assertion after the link prompt.

    ``link: true`` links the federated account to the local one; ``false``
    creates a separate federation-only identity.
    """
    logger.info("Federated login with link decision requested")
    return await federated_login_use_case.execute(
        FederatedLoginRequest(
            assertion=request.access_token,
            should_link=True,
            confirm_link=request.link,
        )
    )
