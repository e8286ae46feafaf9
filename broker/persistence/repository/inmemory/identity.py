"""In-memory identity repository for testing."""

from datetime import datetime
from typing import Optional

from broker.domain.error import (
    ConcurrentModificationError,
    DuplicateEmailError,
    InvariantViolationError,
)
from broker.domain.model.identity import Identity
from broker.domain.repository.identity import IdentityRepository
from broker.domain.value import FederatedSubject, IdentityId, normalize_email


class InMemoryIdentityRepository(IdentityRepository):
    """In-memory implementation of IdentityRepository for testing."""

    def __init__(self) -> None:
        # dict preserves insertion order; updates keep their original position
        self._identities: dict[IdentityId, Identity] = {}
        self._tokens: dict[str, IdentityId] = {}

    async def find_by_id(self, identity_id: IdentityId) -> Optional[Identity]:
        """Find identity by ID."""
        return self._identities.get(identity_id)

    async def find_local_by_email(self, email: str) -> Optional[Identity]:
        """Find the credentialed identity for an email."""
        normalized = normalize_email(email)
        for identity in self._identities.values():
            if (
                identity.has_local_credential
                and identity.normalized_email == normalized
            ):
                return identity
        return None

    async def find_all_by_email(self, email: str) -> list[Identity]:
        """Find every identity with an email."""
        normalized = normalize_email(email)
        return [
            identity
            for identity in self._identities.values()
            if identity.normalized_email == normalized
        ]

    async def find_by_federated_subject(
        self, subject: FederatedSubject
    ) -> Optional[Identity]:
        """Find identity by federated subject/issuer pair."""
        for identity in self._identities.values():
            if identity.federated_subject == subject:
                return identity
        return None

    async def find_by_refresh_token(
        self, token: str, now: datetime
    ) -> Optional[Identity]:
        """Find the owner of a live refresh token, pruning expired tokens."""
        identity_id = self._tokens.get(token)
        if identity_id is None:
            return None

        identity = self._identities[identity_id]
        if identity.find_live_token(token, now) is not None:
            return identity

        pruned = identity.prune_expired_tokens(now)
        for refresh_token in identity.refresh_tokens:
            if refresh_token not in pruned.refresh_tokens:
                self._tokens.pop(refresh_token.token, None)
        self._identities[identity_id] = pruned
        return None

    async def list_all(self) -> list[Identity]:
        """List all identities."""
        return list(self._identities.values())

    async def save(self, identity: Identity) -> Identity:
        """Save identity, enforcing version and uniqueness invariants."""
        existing = self._identities.get(identity.id)
        stored_version = existing.version if existing else 0
        if identity.version != stored_version:
            raise ConcurrentModificationError(str(identity.id))

        self._check_invariants(identity)

        saved = identity.model_copy(update={"version": identity.version + 1})

        if existing:
            for refresh_token in existing.refresh_tokens:
                self._tokens.pop(refresh_token.token, None)
        for refresh_token in saved.refresh_tokens:
            self._tokens[refresh_token.token] = saved.id

        self._identities[saved.id] = saved
        return saved

    async def delete(self, identity_id: IdentityId) -> None:
        """Delete identity and its refresh tokens."""
        identity = self._identities.pop(identity_id, None)
        if identity:
            for refresh_token in identity.refresh_tokens:
                self._tokens.pop(refresh_token.token, None)

    def _check_invariants(self, identity: Identity) -> None:
        for other in self._identities.values():
            if other.id == identity.id:
                continue
            subject = identity.federated_subject
            if subject is not None and other.federated_subject == subject:
                raise InvariantViolationError(
                    "Federated subject is already bound to another identity"
                )
            if (
                identity.has_local_credential
                and other.has_local_credential
                and other.normalized_email == identity.normalized_email
            ):
                raise DuplicateEmailError()

        for refresh_token in identity.refresh_tokens:
            owner = self._tokens.get(refresh_token.token)
            if owner is not None and owner != identity.id:
                raise InvariantViolationError(
                    "Refresh token is held by another identity"
                )
