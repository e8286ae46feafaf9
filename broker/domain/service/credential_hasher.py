"""Credential hashing domain service."""

import asyncio
import base64
import hashlib
import hmac

from broker.domain.value import normalize_email

from .base import Service


class CredentialHasher(Service):
    """Derives storable password verifiers.

    PBKDF2-HMAC-SHA256 salted with the normalized email, so the verifier is
    deterministic per (password, email) and case-insensitive on the email.
    """

    def __init__(self, iterations: int, length: int) -> None:
        """Initialize credential hasher.

        Args:
            iterations: PBKDF2 iteration count
            length: Derived key length in bytes
        """
        self.iterations = iterations
        self.length = length

    def hash(self, password: str, email: str) -> str:
        """Derive the verifier for a password.

        Args:
            password: Plaintext password
            email: Account email, normalized before use as salt

        Returns:
            Base64 encoded derived key
        """
        derived = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            normalize_email(email).encode("utf-8"),
            self.iterations,
            dklen=self.length,
        )
        return base64.b64encode(derived).decode("ascii")

    async def compute(self, password: str, email: str) -> str:
        """Derive the verifier off the event loop."""
        return await asyncio.to_thread(self.hash, password, email)

    async def verify(self, password: str, email: str, verifier: str) -> bool:
        """Check a password against a stored verifier.

        Args:
            password: Plaintext password presented at login
            email: Account email
            verifier: Stored verifier

        Returns:
            True if the independently computed verifier matches
        """
        candidate = await self.compute(password, email)
        return hmac.compare_digest(candidate.encode("utf-8"), verifier.encode("utf-8"))
