"""Domain value objects for the identity broker."""

from enum import Enum

from pydantic import field_validator

from broker.domain.value.common import RootValueObject, ValueObject


class IdentityKind(str, Enum):
    """How an identity can authenticate."""

    LOCAL_ONLY = "local_only"
    FEDERATED_ONLY = "federated_only"
    LINKED = "linked"


class Email(RootValueObject[str]):
    """Email address as entered by the user.

    The original casing is kept for display; comparisons use ``normalized``.
    """

    @field_validator("root")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the address has a local part and a domain."""
        v = v.strip()
        local, sep, domain = v.partition("@")
        if not sep or not local or not domain or len(v) > 320:
            raise ValueError("Invalid email address")
        return v

    @property
    def normalized(self) -> str:
        """Lowercased form used for lookups and credential salting."""
        return normalize_email(self.root)


def normalize_email(email: str) -> str:
    """Normalize an email for case-insensitive comparison."""
    return email.strip().lower()


class FederatedSubject(ValueObject):
    """Identity of a user at the federated identity provider.

    The pair is unique across the store: at most one identity may hold it.
    """

    subject_id: str  # Object id of the user at the provider
    issuer_id: str  # Tenant / issuer the subject belongs to


class FederatedProfile(ValueObject):
    """Profile returned by the federated identity provider."""

    subject: FederatedSubject
    display_name: str
    email: str


class FederatedExchange(ValueObject):
    """Result of exchanging a caller assertion with the federated provider."""

    access_token: str  # Federation-scoped token; never logged
    profile: FederatedProfile
