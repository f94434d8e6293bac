"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in credential_registry/models/.
One table per keyed registry; composite keys become composite primary
keys.  PgRegistryStore converts between rows and domain dataclasses.

Ratings carry no foreign key: a rating may reference a credential id that
was never issued.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from credential_registry.db.engine import Base


class RegistryCounterRow(Base):
    __tablename__ = "registry_counters"

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


# --- Authorization ---


class AuthorizedIssuerRow(Base):
    __tablename__ = "authorized_issuers"

    identity: Mapped[str] = mapped_column(String(128), primary_key=True)
    authorized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class DelegationRow(Base):
    __tablename__ = "delegations"

    delegate: Mapped[str] = mapped_column(String(128), primary_key=True)
    delegator: Mapped[str] = mapped_column(String(128), nullable=False)
    expiry: Mapped[int] = mapped_column(BigInteger, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


# --- Credential store ---


class CredentialRow(Base):
    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    recipient: Mapped[str] = mapped_column(String(128), nullable=False)
    issuer: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    skill: Mapped[str] = mapped_column(String(64), nullable=False)
    issue_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expiry_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # `metadata` is reserved on declarative classes; keep the column name.
    details: Mapped[str] = mapped_column("metadata", String(256), nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class CredentialTokenRow(Base):
    __tablename__ = "credential_tokens"

    credential_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    owner: Mapped[str] = mapped_column(String(128), nullable=False)


# --- Disputes ---


class DisputeRow(Base):
    __tablename__ = "disputes"

    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    disputed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reason: Mapped[str] = mapped_column(String(256), nullable=False)
    disputant: Mapped[str] = mapped_column(String(128), nullable=False)
    issuer_response: Mapped[str] = mapped_column(
        String(256), nullable=False, default=""
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


# --- Auxiliary registries ---


class RatingRow(Base):
    __tablename__ = "ratings"

    credential_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    rater: Mapped[str] = mapped_column(String(128), primary_key=True)
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    comment: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class AchievementRow(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class CategoryTagsRow(Base):
    __tablename__ = "credential_categories"

    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(32)), nullable=False, default=[]
    )


class PrerequisitesRow(Base):
    __tablename__ = "credential_prerequisites"

    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    prerequisite_ids: Mapped[list[int]] = mapped_column(
        ARRAY(BigInteger), nullable=False, default=[]
    )


class UpgradePathRow(Base):
    __tablename__ = "upgrade_paths"

    source_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    target_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), nullable=False
    )
    requirements: Mapped[str] = mapped_column(String(256), nullable=False, default="")


class EndorsementRow(Base):
    __tablename__ = "endorsements"

    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    endorser: Mapped[str] = mapped_column(String(128), primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class VerificationRow(Base):
    __tablename__ = "verification_history"

    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    verifier: Mapped[str] = mapped_column(String(128), primary_key=True)
    count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_verified: Mapped[int] = mapped_column(BigInteger, nullable=False)


class NotificationSettingsRow(Base):
    __tablename__ = "notification_settings"

    credential_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("credentials.id"), primary_key=True
    )
    identity: Mapped[str] = mapped_column(String(128), primary_key=True)
    expiry_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    dispute_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    alert_window: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
