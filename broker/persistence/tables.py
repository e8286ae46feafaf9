"""SQLAlchemy table definitions for the identity store.

They match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

metadata = MetaData()

# Constraint names, matched when translating integrity errors
UQ_FEDERATED_SUBJECT = "uq_identities_federated_subject"
UQ_CREDENTIALED_EMAIL = "uq_identities_credentialed_email"

# ============================================================================
# IDENTITIES TABLE
# ============================================================================
identities_table = Table(
    "identities",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("email", String(320), nullable=False),
    Column("email_normalized", String(320), nullable=False),
    Column("display_name", String(255), nullable=False),
    Column("credential_verifier", Text, nullable=True),
    Column("federated_subject_id", String(255), nullable=True),
    Column("federated_issuer_id", String(255), nullable=True),
    Column("version", Integer, nullable=False, server_default="1"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    UniqueConstraint(
        "federated_issuer_id", "federated_subject_id", name=UQ_FEDERATED_SUBJECT
    ),
    CheckConstraint(
        "credential_verifier IS NOT NULL OR federated_subject_id IS NOT NULL",
        name="ck_identities_has_binding",
    ),
    CheckConstraint(
        "(federated_subject_id IS NULL) = (federated_issuer_id IS NULL)",
        name="ck_identities_federated_pair",
    ),
)

# One credentialed identity per email; federated-only identities may share it
Index(
    UQ_CREDENTIALED_EMAIL,
    identities_table.c.email_normalized,
    unique=True,
    postgresql_where=text("credential_verifier IS NOT NULL"),
)
Index("idx_identities_email_normalized", identities_table.c.email_normalized)
Index("idx_identities_created_at", identities_table.c.created_at)

# ============================================================================
# REFRESH TOKENS TABLE
# ============================================================================
refresh_tokens_table = Table(
    "refresh_tokens",
    metadata,
    Column("token", String(128), primary_key=True),
    Column(
        "identity_id",
        UUID(as_uuid=True),
        ForeignKey("identities.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("absolute_expiry", TIMESTAMP(timezone=True), nullable=False),
)

Index("idx_refresh_tokens_identity_id", refresh_tokens_table.c.identity_id)
