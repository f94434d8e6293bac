from __future__ import annotations

from dataclasses import dataclass

SKILL_MAX_LEN = 64
METADATA_MAX_LEN = 256
IDENTITY_MAX_LEN = 128
MAX_LEVEL = 3
DEFAULT_LEVEL = 1


@dataclass(frozen=True, slots=True)
class Credential:
    """One issued skill certification.

    `issuer` is the issuer of record.  For credentials issued by a delegate
    it holds the delegator, never the delegate who made the call.

    Validity is not a field: it is computed at verification time from
    `revoked` and the host time counter (see services/verification.py).
    """

    id: int
    recipient: str
    issuer: str
    skill: str
    issue_time: int
    expiry_time: int
    metadata: str
    revoked: bool = False
    level: int = DEFAULT_LEVEL

    @staticmethod
    def new(
        *,
        id: int,
        recipient: str,
        issuer: str,
        skill: str,
        issue_time: int,
        expiry_time: int,
        metadata: str,
    ) -> Credential:
        return Credential(
            id=id,
            recipient=recipient,
            issuer=issuer,
            skill=skill,
            issue_time=issue_time,
            expiry_time=expiry_time,
            metadata=metadata,
        )
