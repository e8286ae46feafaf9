"""Unit tests for CredentialHasher."""

import base64

import pytest

from broker.domain.service import CredentialHasher


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher(iterations=1000, length=24)


class TestCredentialHasher:
    """Tests for CredentialHasher."""

    def test_hash_is_deterministic(self, hasher: CredentialHasher):
        """Same password and email should always give the same verifier."""
        assert hasher.hash("correct horse", "ada@example.com") == hasher.hash(
            "correct horse", "ada@example.com"
        )

    def test_hash_ignores_email_case(self, hasher: CredentialHasher):
        """Email is normalized before use as salt."""
        assert hasher.hash("p4ssw0rd", "A@B.com") == hasher.hash("p4ssw0rd", "a@b.com")

    def test_hash_differs_by_email(self, hasher: CredentialHasher):
        """Different emails salt the same password differently."""
        assert hasher.hash("p4ssw0rd", "ada@example.com") != hasher.hash(
            "p4ssw0rd", "grace@example.com"
        )

    def test_hash_differs_by_password(self, hasher: CredentialHasher):
        assert hasher.hash("one", "ada@example.com") != hasher.hash(
            "two", "ada@example.com"
        )

    def test_hash_has_fixed_length(self, hasher: CredentialHasher):
        """Verifier decodes to the configured number of bytes."""
        verifier = hasher.hash("x" * 200, "ada@example.com")

        assert len(base64.b64decode(verifier)) == 24

    def test_hash_never_contains_password(self, hasher: CredentialHasher):
        verifier = hasher.hash("plaintext-secret", "ada@example.com")

        assert "plaintext-secret" not in verifier

    @pytest.mark.asyncio
    async def test_verify_accepts_matching_password(self, hasher: CredentialHasher):
        verifier = await hasher.compute("p4ssw0rd", "Ada@Example.com")

        assert await hasher.verify("p4ssw0rd", "ada@example.com", verifier)

    @pytest.mark.asyncio
    async def test_verify_rejects_wrong_password(self, hasher: CredentialHasher):
        verifier = await hasher.compute("p4ssw0rd", "ada@example.com")

        assert not await hasher.verify("wrong", "ada@example.com", verifier)
