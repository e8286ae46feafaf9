"""Identity aggregate root.

An identity reconciles a locally issued email/password account and a
federated account into one durable user. How it can authenticate is
captured by its binding, a tagged union that cannot express "neither".
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import Field

from broker.domain.error import InvariantViolationError, TokenNotFoundError
from broker.domain.model.common import DomainModel
from broker.domain.model.refresh_token import RefreshToken
from broker.domain.value import (
    FederatedProfile,
    FederatedSubject,
    IdentityId,
    IdentityKind,
    normalize_email,
)
from broker.domain.value.common import ValueObject


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocalBinding(ValueObject):
    """Email/password account only."""

    kind: Literal["local"] = "local"
    verifier: str  # Output of the credential hasher, never the password


class FederatedBinding(ValueObject):
    """Federated account only."""

    kind: Literal["federated"] = "federated"
    subject: FederatedSubject


class LinkedBinding(ValueObject):
    """Local account linked to a federated account."""

    kind: Literal["linked"] = "linked"
    verifier: str
    subject: FederatedSubject


IdentityBinding = Annotated[
    Union[LocalBinding, FederatedBinding, LinkedBinding],
    Field(discriminator="kind"),
]


class Identity(DomainModel):
    """Durable user identity.

    Email is unique among identities holding a local credential; federated-only
    identities may share an email. Refresh tokens are kept in issue order.
    ``version`` is the store's optimistic concurrency watermark.
    """

    id: IdentityId
    display_name: str
    email: str
    binding: IdentityBinding
    refresh_tokens: tuple[RefreshToken, ...] = ()
    version: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def create_local(cls, display_name: str, email: str, verifier: str) -> "Identity":
        """New identity from a local sign-up."""
        return cls(
            id=IdentityId(uuid4()),
            display_name=display_name,
            email=email,
            binding=LocalBinding(verifier=verifier),
        )

    @classmethod
    def create_federated(cls, profile: FederatedProfile) -> "Identity":
        """New identity synthesized from a federated profile, without local credential."""
        return cls(
            id=IdentityId(uuid4()),
            display_name=profile.display_name,
            email=profile.email,
            binding=FederatedBinding(subject=profile.subject),
        )

    @property
    def kind(self) -> IdentityKind:
        if isinstance(self.binding, LinkedBinding):
            return IdentityKind.LINKED
        if isinstance(self.binding, FederatedBinding):
            return IdentityKind.FEDERATED_ONLY
        return IdentityKind.LOCAL_ONLY

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)

    @property
    def has_local_credential(self) -> bool:
        return isinstance(self.binding, (LocalBinding, LinkedBinding))

    @property
    def federation_linked(self) -> bool:
        return isinstance(self.binding, (FederatedBinding, LinkedBinding))

    @property
    def verifier(self) -> str | None:
        """Stored credential verifier, if the identity has a local account."""
        if isinstance(self.binding, (LocalBinding, LinkedBinding)):
            return self.binding.verifier
        return None

    @property
    def federated_subject(self) -> FederatedSubject | None:
        if isinstance(self.binding, (FederatedBinding, LinkedBinding)):
            return self.binding.subject
        return None

    def link(self, subject: FederatedSubject) -> "Identity":
        """Attach a federated subject, keeping any local credential.

        Args:
            subject: Federated subject/issuer pair to bind

        Returns:
            Updated identity
        """
        binding: LocalBinding | FederatedBinding | LinkedBinding
        if self.verifier is not None:
            binding = LinkedBinding(verifier=self.verifier, subject=subject)
        else:
            binding = FederatedBinding(subject=subject)
        return self.model_copy(update={"binding": binding, "updated_at": _utcnow()})

    def find_live_token(self, token: str, now: datetime) -> RefreshToken | None:
        """Return the matching refresh token if it is still live at ``now``."""
        for refresh_token in self.refresh_tokens:
            if refresh_token.token == token and refresh_token.is_live(now):
                return refresh_token
        return None

    def attach_refresh_token(self, refresh_token: RefreshToken) -> "Identity":
        """Add a newly issued refresh token.

        Raises:
            InvariantViolationError: If the token value is already held
        """
        if any(t.token == refresh_token.token for t in self.refresh_tokens):
            raise InvariantViolationError("Refresh token already attached")
        return self.model_copy(
            update={
                "refresh_tokens": (*self.refresh_tokens, refresh_token),
                "updated_at": _utcnow(),
            }
        )

    def consume_refresh_token(self, token: str, now: datetime) -> "Identity":
        """Remove a live refresh token as part of a rotation.

        Raises:
            TokenNotFoundError: If the token is not held or has expired
        """
        if self.find_live_token(token, now) is None:
            raise TokenNotFoundError()
        return self.model_copy(
            update={
                "refresh_tokens": tuple(
                    t for t in self.refresh_tokens if t.token != token
                ),
                "updated_at": _utcnow(),
            }
        )

    def prune_expired_tokens(self, now: datetime) -> "Identity":
        """Drop refresh tokens that are no longer live."""
        live = tuple(t for t in self.refresh_tokens if t.is_live(now))
        if len(live) == len(self.refresh_tokens):
            return self
        return self.model_copy(update={"refresh_tokens": live})
