"""Auxiliary records attached to a credential.

None of these gate the credential's own validity: ratings, endorsements
and the rest are metadata that reference a credential id.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_RATING = 5
COMMENT_MAX_LEN = 256
TITLE_MAX_LEN = 64
DESCRIPTION_MAX_LEN = 256
CATEGORY_MAX_LEN = 32
TAG_MAX_LEN = 32
MAX_TAGS = 5
MAX_PREREQUISITES = 10
REQUIREMENTS_MAX_LEN = 256


@dataclass(frozen=True, slots=True)
class Rating:
    credential_id: int
    rater: str
    rating: int
    comment: str
    timestamp: int


@dataclass(frozen=True, slots=True)
class Achievement:
    id: int
    credential_id: int
    title: str
    description: str
    timestamp: int


@dataclass(frozen=True, slots=True)
class CategoryTags:
    credential_id: int
    category: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Prerequisites:
    credential_id: int
    prerequisite_ids: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class UpgradePath:
    source_id: int
    target_id: int
    requirements: str = ""


@dataclass(frozen=True, slots=True)
class Endorsement:
    credential_id: int
    endorser: str
    timestamp: int


@dataclass(frozen=True, slots=True)
class VerificationRecord:
    """Successful logged verifications of one credential by one verifier."""

    credential_id: int
    verifier: str
    count: int
    last_verified: int


@dataclass(frozen=True, slots=True)
class NotificationSettings:
    """Alert preferences of one party (recipient or issuer) for a credential.

    Stored for notification collaborators to read; the registry itself
    never sends anything.
    """

    credential_id: int
    identity: str
    expiry_alerts: bool = True
    dispute_alerts: bool = True
    alert_window: int = 0
