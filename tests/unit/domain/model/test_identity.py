"""Unit tests for the Identity aggregate."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from broker.domain.error import InvariantViolationError, TokenNotFoundError
from broker.domain.model import Identity, RefreshToken
from broker.domain.model.identity import FederatedBinding, LinkedBinding, LocalBinding
from broker.domain.value import FederatedSubject, IdentityKind
from tests.factories import TENANT_ID, make_profile

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _token(value: str, minutes: int = 5) -> RefreshToken:
    return RefreshToken(token=value, absolute_expiry=NOW + timedelta(minutes=minutes))


@pytest.fixture
def local() -> Identity:
    return Identity.create_local("Ada", "Ada@Example.com", verifier="verifier")


class TestIdentityBinding:
    """Tests for binding-derived properties."""

    def test_local_identity(self, local: Identity):
        assert local.kind is IdentityKind.LOCAL_ONLY
        assert local.has_local_credential
        assert not local.federation_linked
        assert local.federated_subject is None
        assert local.normalized_email == "ada@example.com"
        assert local.email == "Ada@Example.com"

    def test_federated_identity(self):
        identity = Identity.create_federated(make_profile())

        assert identity.kind is IdentityKind.FEDERATED_ONLY
        assert not identity.has_local_credential
        assert identity.federation_linked
        assert identity.verifier is None

    def test_binding_is_discriminated_on_kind(self, local: Identity):
        """A stored binding round-trips to the right variant."""
        data = local.link(make_profile().subject).model_dump()

        restored = Identity.model_validate(data)

        assert isinstance(restored.binding, LinkedBinding)

    def test_binding_cannot_be_empty(self, local: Identity):
        data = local.model_dump()
        data["binding"] = {"kind": "local"}

        with pytest.raises(ValidationError):
            Identity.model_validate(data)

    def test_identity_is_immutable(self, local: Identity):
        with pytest.raises(ValidationError):
            local.display_name = "Grace"


class TestLink:
    """Tests for Identity.link."""

    def test_link_local_keeps_verifier(self, local: Identity):
        subject = FederatedSubject(subject_id="aad-object-1", issuer_id=TENANT_ID)

        linked = local.link(subject)

        assert linked.id == local.id
        assert linked.binding == LinkedBinding(verifier="verifier", subject=subject)
        assert local.binding == LocalBinding(verifier="verifier")

    def test_link_federated_replaces_subject(self):
        identity = Identity.create_federated(make_profile())
        subject = FederatedSubject(subject_id="aad-object-2", issuer_id=TENANT_ID)

        relinked = identity.link(subject)

        assert relinked.binding == FederatedBinding(subject=subject)


class TestRefreshTokens:
    """Tests for refresh token bookkeeping."""

    def test_attach_keeps_issue_order(self, local: Identity):
        identity = local.attach_refresh_token(_token("a")).attach_refresh_token(
            _token("b")
        )

        assert [t.token for t in identity.refresh_tokens] == ["a", "b"]

    def test_attach_duplicate_fails(self, local: Identity):
        identity = local.attach_refresh_token(_token("a"))

        with pytest.raises(InvariantViolationError):
            identity.attach_refresh_token(_token("a", minutes=10))

    def test_consume_removes_token(self, local: Identity):
        identity = local.attach_refresh_token(_token("a")).attach_refresh_token(
            _token("b")
        )

        consumed = identity.consume_refresh_token("a", NOW)

        assert [t.token for t in consumed.refresh_tokens] == ["b"]

    def test_consume_unknown_token_fails(self, local: Identity):
        with pytest.raises(TokenNotFoundError):
            local.consume_refresh_token("missing", NOW)

    def test_consume_expired_token_fails(self, local: Identity):
        identity = local.attach_refresh_token(_token("a"))

        with pytest.raises(TokenNotFoundError):
            identity.consume_refresh_token("a", NOW + timedelta(minutes=6))

    def test_token_expiring_now_is_not_live(self):
        """Expiry equal to now counts as expired."""
        token = _token("a", minutes=0)

        assert not token.is_live(NOW)
        assert token.is_live(NOW - timedelta(microseconds=1))

    def test_prune_drops_only_expired(self, local: Identity):
        identity = local.attach_refresh_token(_token("old", minutes=1))
        identity = identity.attach_refresh_token(_token("new", minutes=10))

        pruned = identity.prune_expired_tokens(NOW + timedelta(minutes=2))

        assert [t.token for t in pruned.refresh_tokens] == ["new"]

    def test_prune_without_expired_returns_same_identity(self, local: Identity):
        identity = local.attach_refresh_token(_token("a"))

        assert identity.prune_expired_tokens(NOW) is identity

    def test_expiry_epoch_seconds(self):
        token = _token("a", minutes=0)

        assert token.expiry_epoch_seconds == int(NOW.timestamp())
