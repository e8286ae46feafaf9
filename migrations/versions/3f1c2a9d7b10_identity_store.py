"""identity_store

Create the identity store:
- Identities (local credential, federated binding, or both)
- Refresh tokens (keyed by token value, owned by one identity)

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "identities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("email_normalized", sa.String(320), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("credential_verifier", sa.Text(), nullable=True),
        sa.Column("federated_subject_id", sa.String(255), nullable=True),
        sa.Column("federated_issuer_id", sa.String(255), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.UniqueConstraint(
            "federated_issuer_id",
            "federated_subject_id",
            name="uq_identities_federated_subject",
        ),
        sa.CheckConstraint(
            "credential_verifier IS NOT NULL OR federated_subject_id IS NOT NULL",
            name="ck_identities_has_binding",
        ),
        sa.CheckConstraint(
            "(federated_subject_id IS NULL) = (federated_issuer_id IS NULL)",
            name="ck_identities_federated_pair",
        ),
    )

    # Email is only unique among identities holding a local credential
    op.create_index(
        "uq_identities_credentialed_email",
        "identities",
        ["email_normalized"],
        unique=True,
        postgresql_where=sa.text("credential_verifier IS NOT NULL"),
    )
    op.create_index(
        "idx_identities_email_normalized", "identities", ["email_normalized"]
    )
    op.create_index("idx_identities_created_at", "identities", ["created_at"])

    op.create_table(
        "refresh_tokens",
        sa.Column("token", sa.String(128), primary_key=True),
        sa.Column(
            "identity_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("identities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "absolute_expiry", postgresql.TIMESTAMP(timezone=True), nullable=False
        ),
    )
    op.create_index(
        "idx_refresh_tokens_identity_id", "refresh_tokens", ["identity_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_refresh_tokens_identity_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")
    op.drop_index("idx_identities_created_at", table_name="identities")
    op.drop_index("idx_identities_email_normalized", table_name="identities")
    op.drop_index("uq_identities_credentialed_email", table_name="identities")
    op.drop_table("identities")
