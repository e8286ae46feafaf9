"""Unit tests for GetProfileUseCase."""

from uuid import uuid4

from dishka import AsyncContainer
import pytest

from broker.adapter.graph import GraphIdentityOracle
from broker.application.usecase.auth.federated_login import (
    FederatedLoginRequest,
    FederatedLoginUseCase,
)
from broker.application.usecase.auth.sign_up import SignUpRequest, SignUpUseCase
from broker.application.usecase.identity.get_profile import (
    GetProfileRequest,
    GetProfileUseCase,
)
from broker.domain.error import FederationExchangeError, NotFoundError
from broker.domain.service import IdentityService
from tests.factories import TENANT_ID, make_profile
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


async def _federated_login(env: AsyncContainer) -> str:
    oracle = await env.get(GraphIdentityOracle)
    oracle.register("ada-assertion", make_profile())
    login = await env.get(FederatedLoginUseCase)
    await login.execute(FederatedLoginRequest(assertion="ada-assertion"))
    identity_service = await env.get(IdentityService)
    identity = await identity_service.get_by_federated_subject(make_profile().subject)
    return str(identity.id)


class TestGetProfileUseCase:
    """Tests for GetProfileUseCase."""

    @pytest.mark.asyncio
    async def test_local_identity_has_no_federated_profile(
        self, unit_env: AsyncContainer
    ):
        sign_up = await unit_env.get(SignUpUseCase)
        created = await sign_up.execute(
            SignUpRequest(
                email="grace@example.com", password="pw", display_name="Grace"
            )
        )
        use_case = await unit_env.get(GetProfileUseCase)

        response = await use_case.execute(GetProfileRequest(identity_id=created.id))

        assert response.local_identity.id == created.id
        assert response.local_identity.display_name == "Grace"
        assert response.federated_profile is None

    @pytest.mark.asyncio
    async def test_federated_identity_uses_cached_token(
        self, unit_env: AsyncContainer
    ):
        """The Graph token from sign-in is reused without another exchange."""
        identity_id = await _federated_login(unit_env)
        oracle = await unit_env.get(GraphIdentityOracle)
        calls_before = oracle.exchange_calls
        use_case = await unit_env.get(GetProfileUseCase)

        response = await use_case.execute(GetProfileRequest(identity_id=identity_id))

        assert response.federated_profile.subject_id == "aad-object-1"
        assert response.federated_profile.issuer_id == TENANT_ID
        assert oracle.exchange_calls == calls_before

    @pytest.mark.asyncio
    async def test_revoked_cached_token_yields_no_profile(
        self, unit_env: AsyncContainer
    ):
        identity_id = await _federated_login(unit_env)
        oracle = await unit_env.get(GraphIdentityOracle)
        oracle.revoke("graph:ada-assertion")
        use_case = await unit_env.get(GetProfileUseCase)

        response = await use_case.execute(GetProfileRequest(identity_id=identity_id))

        assert response.federated_profile is None
        assert response.local_identity.federation_linked

    @pytest.mark.asyncio
    async def test_supplied_assertion_is_exchanged(self, unit_env: AsyncContainer):
        identity_id = await _federated_login(unit_env)
        oracle = await unit_env.get(GraphIdentityOracle)
        oracle.register("fresh", make_profile(display_name="Ada L."))
        use_case = await unit_env.get(GetProfileUseCase)

        response = await use_case.execute(
            GetProfileRequest(identity_id=identity_id, assertion="fresh")
        )

        assert response.federated_profile.display_name == "Ada L."

    @pytest.mark.asyncio
    async def test_rejected_assertion_propagates(self, unit_env: AsyncContainer):
        identity_id = await _federated_login(unit_env)
        use_case = await unit_env.get(GetProfileUseCase)

        with pytest.raises(FederationExchangeError):
            await use_case.execute(
                GetProfileRequest(identity_id=identity_id, assertion="invalid")
            )

    @pytest.mark.asyncio
    async def test_deleted_identity_is_not_found(self, unit_env: AsyncContainer):
        use_case = await unit_env.get(GetProfileUseCase)

        with pytest.raises(NotFoundError):
            await use_case.execute(GetProfileRequest(identity_id=str(uuid4())))

    @pytest.mark.asyncio
    async def test_federated_profile_serializes_camel_case(
        self, unit_env: AsyncContainer
    ):
        identity_id = await _federated_login(unit_env)
        use_case = await unit_env.get(GetProfileUseCase)

        response = await use_case.execute(GetProfileRequest(identity_id=identity_id))
        dumped = response.model_dump(by_alias=True)

        assert dumped["localIdentity"]["federationLinked"] is True
        assert dumped["federatedProfile"]["subjectId"] == "aad-object-1"

    @pytest.mark.asyncio
    async def test_assertion_for_another_account_does_not_replace_cached_token(
        self, unit_env: AsyncContainer
    ):
        """Later cached reads still return the identity's own profile."""
        # Arrange
        identity_id = await _federated_login(unit_env)
        oracle = await unit_env.get(GraphIdentityOracle)
        oracle.register(
            "eve-assertion", make_profile(subject_id="eve", email="eve@example.com")
        )
        use_case = await unit_env.get(GetProfileUseCase)

        # Act
        with_assertion = await use_case.execute(
            GetProfileRequest(identity_id=identity_id, assertion="eve-assertion")
        )
        cached = await use_case.execute(GetProfileRequest(identity_id=identity_id))

        # Assert
        assert with_assertion.federated_profile.email == "eve@example.com"
        assert cached.federated_profile.email == "ada@example.com"
        assert cached.federated_profile.subject_id == "aad-object-1"
