"""Identity administration and profile routes (authenticated)."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Header, HTTPException, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from broker.application.usecase.identity import (
    DeleteIdentityUseCase,
    GetProfileUseCase,
    ListIdentitiesUseCase,
)
from broker.application.usecase.identity.delete_identity import DeleteIdentityRequest
from broker.application.usecase.identity.get_profile import (
    GetProfileRequest,
    GetProfileResponse,
)
from broker.application.usecase.identity.list_identities import ListIdentitiesRequest
from broker.application.usecase.identity.summary import IdentitySummary
from broker.domain.error import NotFoundError
from broker.domain.service import TokenService
from broker.interface.api.auth import authenticate

router = APIRouter(tags=["identities"], route_class=DishkaRoute)


class ProfileAPIRequest(BaseModel):
    """Profile request; the optional assertion refreshes the federated profile."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str | None = None


@router.get("/users", response_model=list[IdentitySummary])
async def list_users(
    list_identities_use_case: FromDishka[ListIdentitiesUseCase],
    token_service: FromDishka[TokenService],
    authorization: str | None = Header(default=None),
) -> list[IdentitySummary]:
    """List every identity.

    Example:
        GET /users
        Authorization: Bearer eyJ...

        Response:
        [
            {
                "id": "0b6c...",
                "email": "ada@example.com",
                "displayName": "Ada",
                "federationLinked": true,
                "hasLocalAccount": true,
                "kind": "linked"
            }
        ]
    """
    authenticate(authorization, token_service)
    return await list_identities_use_case.execute(ListIdentitiesRequest())


@router.post("/users/delete")
async def delete_user(
    request: DeleteIdentityRequest,
    delete_identity_use_case: FromDishka[DeleteIdentityUseCase],
    token_service: FromDishka[TokenService],
    authorization: str | None = Header(default=None),
) -> None:
    """Delete every identity with the given email, with its refresh tokens."""
    authenticate(authorization, token_service)
    await delete_identity_use_case.execute(request)


@router.post("/profile", response_model=GetProfileResponse)
async def get_profile(
    request: ProfileAPIRequest,
    get_profile_use_case: FromDishka[GetProfileUseCase],
    token_service: FromDishka[TokenService],
    authorization: str | None = Header(default=None),
) -> GetProfileResponse:
    """Return the caller's identity and, when available, federated profile."""
    payload = authenticate(authorization, token_service)

    try:
        return await get_profile_use_case.execute(
            GetProfileRequest(
                identity_id=payload.identity_id, assertion=request.access_token
            )
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
