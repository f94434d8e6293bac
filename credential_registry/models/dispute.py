from __future__ import annotations

from dataclasses import dataclass

REASON_MAX_LEN = 256
RESPONSE_MAX_LEN = 256
STATUS_MAX_LEN = 32

STATUS_PENDING = "pending"


@dataclass(frozen=True, slots=True)
class Dispute:
    """A recipient's challenge against one credential.

    At most one per credential, ever.  `status` is free text set by the
    issuer's response ("pending" until then).
    """

    credential_id: int
    disputant: str
    reason: str
    timestamp: int
    status: str = STATUS_PENDING
    issuer_response: str = ""
    disputed: bool = True
