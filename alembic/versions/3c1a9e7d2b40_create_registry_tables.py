"""create registry tables

Revision ID: 3c1a9e7d2b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1a9e7d2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _credential_fk(name: str = "credential_id", **kwargs) -> sa.Column:
    return sa.Column(name, sa.BigInteger(), sa.ForeignKey("credentials.id"), **kwargs)


def upgrade() -> None:
    op.create_table(
        "registry_counters",
        sa.Column("name", sa.String(length=32), primary_key=True),
        sa.Column("value", sa.BigInteger(), nullable=False, server_default="0"),
    )
    op.create_table(
        "authorized_issuers",
        sa.Column("identity", sa.String(length=128), primary_key=True),
        sa.Column("authorized", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "delegations",
        sa.Column("delegate", sa.String(length=128), primary_key=True),
        sa.Column("delegator", sa.String(length=128), nullable=False),
        sa.Column("expiry", sa.BigInteger(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "credentials",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("recipient", sa.String(length=128), nullable=False),
        sa.Column("issuer", sa.String(length=128), nullable=False),
        sa.Column("skill", sa.String(length=64), nullable=False),
        sa.Column("issue_time", sa.BigInteger(), nullable=False),
        sa.Column("expiry_time", sa.BigInteger(), nullable=False),
        sa.Column("metadata", sa.String(length=256), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
    )
    op.create_index("ix_credentials_issuer", "credentials", ["issuer"])
    op.create_table(
        "credential_tokens",
        sa.Column("credential_id", sa.BigInteger(), primary_key=True),
        sa.Column("owner", sa.String(length=128), nullable=False),
    )
    op.create_table(
        "disputes",
        _credential_fk(primary_key=True),
        sa.Column("disputed", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.String(length=256), nullable=False),
        sa.Column("disputant", sa.String(length=128), nullable=False),
        sa.Column("issuer_response", sa.String(length=256), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )
    op.create_table(
        "ratings",
        sa.Column("credential_id", sa.BigInteger(), primary_key=True),
        sa.Column("rater", sa.String(length=128), primary_key=True),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        sa.Column("comment", sa.String(length=256), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )
    op.create_table(
        "achievements",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        _credential_fk(nullable=False),
        sa.Column("title", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=256), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )
    op.create_table(
        "credential_categories",
        _credential_fk(primary_key=True),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("tags", postgresql.ARRAY(sa.String(length=32)), nullable=False),
    )
    op.create_table(
        "credential_prerequisites",
        _credential_fk(primary_key=True),
        sa.Column(
            "prerequisite_ids", postgresql.ARRAY(sa.BigInteger()), nullable=False
        ),
    )
    op.create_table(
        "upgrade_paths",
        _credential_fk("source_id", primary_key=True),
        _credential_fk("target_id", nullable=False),
        sa.Column("requirements", sa.String(length=256), nullable=False),
    )
    op.create_table(
        "endorsements",
        _credential_fk(primary_key=True),
        sa.Column("endorser", sa.String(length=128), primary_key=True),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )
    op.create_table(
        "verification_history",
        _credential_fk(primary_key=True),
        sa.Column("verifier", sa.String(length=128), primary_key=True),
        sa.Column("count", sa.BigInteger(), nullable=False),
        sa.Column("last_verified", sa.BigInteger(), nullable=False),
    )
    op.create_table(
        "notification_settings",
        _credential_fk(primary_key=True),
        sa.Column("identity", sa.String(length=128), primary_key=True),
        sa.Column("expiry_alerts", sa.Boolean(), nullable=False),
        sa.Column("dispute_alerts", sa.Boolean(), nullable=False),
        sa.Column("alert_window", sa.BigInteger(), nullable=False),
    )


def downgrade() -> None:
    for table in (
        "notification_settings",
        "verification_history",
        "endorsements",
        "upgrade_paths",
        "credential_prerequisites",
        "credential_categories",
        "achievements",
        "ratings",
        "disputes",
        "credential_tokens",
    ):
        op.drop_table(table)
    op.drop_index("ix_credentials_issuer", table_name="credentials")
    for table in ("credentials", "delegations", "authorized_issuers", "registry_counters"):
        op.drop_table(table)
