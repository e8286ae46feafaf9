"""In-memory cache of Graph-scoped tokens per identity."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta

from broker.domain.service.token_service import utcnow
from broker.domain.value import IdentityId


class InMemoryFederationTokenCache:
    """Graph tokens keyed by identity, each with its own expiry.

    Entries are dropped ``leeway_seconds`` before they expire so a token
    is never handed out just as Graph stops accepting it.
    """

    def __init__(
        self,
        ttl_seconds: int = 3000,
        leeway_seconds: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if ttl_seconds <= leeway_seconds:
            raise ValueError("Token cache TTL must exceed its leeway")

        self.ttl = timedelta(seconds=ttl_seconds)
        self.leeway = timedelta(seconds=leeway_seconds)
        self.clock = clock

        self._entries: dict[IdentityId, tuple[str, datetime]] = {}
        self._lock = asyncio.Lock()

    async def get(self, identity_id: IdentityId) -> str | None:
        async with self._lock:
            entry = self._entries.get(identity_id)
            if entry is None:
                return None
            access_token, expires_at = entry
            if self.clock() >= expires_at - self.leeway:
                del self._entries[identity_id]
                return None
            return access_token

    async def put(self, identity_id: IdentityId, access_token: str) -> None:
        async with self._lock:
            self._entries[identity_id] = (access_token, self.clock() + self.ttl)

    async def invalidate(self, identity_id: IdentityId) -> None:
        async with self._lock:
            self._entries.pop(identity_id, None)

    def __len__(self) -> int:
        return len(self._entries)
