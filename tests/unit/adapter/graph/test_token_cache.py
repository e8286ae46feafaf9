"""Unit tests for InMemoryFederationTokenCache."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from broker.adapter.graph import InMemoryFederationTokenCache
from broker.domain.value import IdentityId


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryFederationTokenCache:
    return InMemoryFederationTokenCache(ttl_seconds=60, leeway_seconds=10, clock=clock)


class TestInMemoryFederationTokenCache:
    """Tests for InMemoryFederationTokenCache."""

    @pytest.mark.asyncio
    async def test_returns_token_within_lifetime(
        self, cache: InMemoryFederationTokenCache, clock: FakeClock
    ):
        identity_id = IdentityId(uuid4())
        await cache.put(identity_id, "graph-token")

        clock.advance(49)

        assert await cache.get(identity_id) == "graph-token"

    @pytest.mark.asyncio
    async def test_expires_leeway_before_lifetime(
        self, cache: InMemoryFederationTokenCache, clock: FakeClock
    ):
        """Tokens are dropped once within the leeway of their expiry."""
        identity_id = IdentityId(uuid4())
        await cache.put(identity_id, "graph-token")

        clock.advance(50)

        assert await cache.get(identity_id) is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_put_replaces_and_restarts_lifetime(
        self, cache: InMemoryFederationTokenCache, clock: FakeClock
    ):
        identity_id = IdentityId(uuid4())
        await cache.put(identity_id, "first")
        clock.advance(40)
        await cache.put(identity_id, "second")
        clock.advance(40)

        assert await cache.get(identity_id) == "second"

    @pytest.mark.asyncio
    async def test_entries_are_per_identity(self, cache: InMemoryFederationTokenCache):
        ada, grace = IdentityId(uuid4()), IdentityId(uuid4())
        await cache.put(ada, "ada-token")
        await cache.put(grace, "grace-token")

        await cache.invalidate(ada)

        assert await cache.get(ada) is None
        assert await cache.get(grace) == "grace-token"

    @pytest.mark.asyncio
    async def test_invalidate_unknown_is_noop(
        self, cache: InMemoryFederationTokenCache
    ):
        await cache.invalidate(IdentityId(uuid4()))

        assert len(cache) == 0

    def test_ttl_must_exceed_leeway(self):
        with pytest.raises(ValueError):
            InMemoryFederationTokenCache(ttl_seconds=30, leeway_seconds=30)
