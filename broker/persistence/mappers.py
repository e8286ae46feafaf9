"""Mappers for converting between database rows and domain models.

Since the domain models are immutable Pydantic models, rows are mapped by
hand rather than through SQLAlchemy's ORM.
"""

from collections.abc import Iterable
from typing import Any, Dict
from uuid import UUID

from broker.domain.error import InvariantViolationError
from broker.domain.model import (
    FederatedBinding,
    Identity,
    LinkedBinding,
    LocalBinding,
    RefreshToken,
)
from broker.domain.value import FederatedSubject, IdentityId


def row_to_refresh_token(row: Dict[str, Any]) -> RefreshToken:
    """Convert database row to RefreshToken domain model."""
    return RefreshToken(token=row["token"], absolute_expiry=row["absolute_expiry"])


def row_to_identity(
    row: Dict[str, Any], token_rows: Iterable[Dict[str, Any]] = ()
) -> Identity:
    """Convert database rows to Identity domain model.

    Args:
        row: Identity row as dict
        token_rows: The identity's refresh token rows, in issue order

    Returns:
        Identity domain model

    Raises:
        InvariantViolationError: If the row has neither credential nor federated binding
    """
    verifier = row.get("credential_verifier")
    subject = None
    if row.get("federated_subject_id") is not None:
        subject = FederatedSubject(
            subject_id=row["federated_subject_id"],
            issuer_id=row["federated_issuer_id"],
        )

    if verifier is not None and subject is not None:
        binding = LinkedBinding(verifier=verifier, subject=subject)
    elif verifier is not None:
        binding = LocalBinding(verifier=verifier)
    elif subject is not None:
        binding = FederatedBinding(subject=subject)
    else:
        raise InvariantViolationError(f"Identity {row['id']} has no binding")

    identity_id = row["id"] if isinstance(row["id"], UUID) else UUID(row["id"])

    return Identity(
        id=IdentityId(identity_id),
        display_name=row["display_name"],
        email=row["email"],
        binding=binding,
        refresh_tokens=tuple(row_to_refresh_token(t) for t in token_rows),
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def identity_to_dict(identity: Identity) -> Dict[str, Any]:
    """Convert Identity domain model to an identities row.

    Refresh tokens are stored separately; see ``refresh_tokens_to_rows``.
    """
    subject = identity.federated_subject
    return {
        "id": identity.id,
        "email": identity.email,
        "email_normalized": identity.normalized_email,
        "display_name": identity.display_name,
        "credential_verifier": identity.verifier,
        "federated_subject_id": subject.subject_id if subject else None,
        "federated_issuer_id": subject.issuer_id if subject else None,
        "created_at": identity.created_at,
        "updated_at": identity.updated_at,
    }


def refresh_tokens_to_rows(identity: Identity) -> list[Dict[str, Any]]:
    """Convert an identity's refresh tokens to refresh_tokens rows."""
    return [
        {
            "token": refresh_token.token,
            "identity_id": identity.id,
            "absolute_expiry": refresh_token.absolute_expiry,
        }
        for refresh_token in identity.refresh_tokens
    ]
