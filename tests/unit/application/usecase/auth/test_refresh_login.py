"""Unit tests for RefreshLoginUseCase."""

import asyncio
from datetime import timedelta

from dishka import AsyncContainer
import pytest

from broker.application.usecase.auth.login_local import (
    LoginLocalRequest,
    LoginLocalUseCase,
)
from broker.application.usecase.auth.refresh_login import (
    RefreshLoginRequest,
    RefreshLoginUseCase,
)
from broker.application.usecase.auth.sign_up import SignUpRequest, SignUpUseCase
from broker.domain.error import TokenNotFoundError
from broker.domain.service import IdentityService, TokenService
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


async def _login(env: AsyncContainer):
    sign_up = await env.get(SignUpUseCase)
    await sign_up.execute(
        SignUpRequest(email="ada@example.com", password="p4ssw0rd", display_name="Ada")
    )
    login = await env.get(LoginLocalUseCase)
    return await login.execute(
        LoginLocalRequest(email="ada@example.com", password="p4ssw0rd")
    )


class TestRefreshLoginUseCase:
    """Tests for RefreshLoginUseCase."""

    @pytest.mark.asyncio
    async def test_rotates_refresh_token(self, unit_env: AsyncContainer):
        """The presented token is replaced by a new one."""
        # Arrange
        session = await _login(unit_env)
        refresh = await unit_env.get(RefreshLoginUseCase)
        identity_service = await unit_env.get(IdentityService)

        # Act
        result = await refresh.execute(RefreshLoginRequest(token=session.refresh_token))

        # Assert
        assert result.refresh_token != session.refresh_token
        assert result.access_token
        assert result.display_name == "Ada"
        identity = await identity_service.get_local_by_email("ada@example.com")
        assert [t.token for t in identity.refresh_tokens] == [result.refresh_token]

    @pytest.mark.asyncio
    async def test_token_cannot_be_used_twice(self, unit_env: AsyncContainer):
        session = await _login(unit_env)
        refresh = await unit_env.get(RefreshLoginUseCase)
        await refresh.execute(RefreshLoginRequest(token=session.refresh_token))

        with pytest.raises(TokenNotFoundError):
            await refresh.execute(RefreshLoginRequest(token=session.refresh_token))

    @pytest.mark.asyncio
    async def test_rotated_token_can_be_rotated_again(self, unit_env: AsyncContainer):
        session = await _login(unit_env)
        refresh = await unit_env.get(RefreshLoginUseCase)

        tokens = [session.refresh_token]
        for _ in range(3):
            result = await refresh.execute(RefreshLoginRequest(token=tokens[-1]))
            tokens.append(result.refresh_token)

        assert len(set(tokens)) == 4

    @pytest.mark.asyncio
    async def test_unknown_token_is_rejected(self, unit_env: AsyncContainer):
        refresh = await unit_env.get(RefreshLoginUseCase)

        with pytest.raises(TokenNotFoundError):
            await refresh.execute(RefreshLoginRequest(token="never-issued"))

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, unit_env: AsyncContainer):
        session = await _login(unit_env)
        refresh = await unit_env.get(RefreshLoginUseCase)
        token_service = await unit_env.get(TokenService)
        later = token_service.now() + timedelta(minutes=6)
        token_service.clock = lambda: later

        with pytest.raises(TokenNotFoundError):
            await refresh.execute(RefreshLoginRequest(token=session.refresh_token))

    @pytest.mark.asyncio
    async def test_concurrent_rotations_succeed_once(self, unit_env: AsyncContainer):
        """Racing presentations of one token yield exactly one new session."""
        session = await _login(unit_env)
        refresh = await unit_env.get(RefreshLoginUseCase)
        request = RefreshLoginRequest(token=session.refresh_token)

        results = await asyncio.gather(
            refresh.execute(request), refresh.execute(request), return_exceptions=True
        )

        assert sum(isinstance(r, TokenNotFoundError) for r in results) == 1
