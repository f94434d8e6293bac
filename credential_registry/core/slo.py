"""Service level objectives for credential-registry.

Three objectives, all over a rolling 30 days:

  availability               99.5% of all requests answered without a 5xx
  verification_availability  99.9% of verify calls answered without a 5xx
  latency_p95                p95 response time under 500ms

Verification has the tighter target because relying parties call it on
their own hot path.  A revoked, expired or unknown credential is a 4xx
answer and counts as a good request: the registry told the verifier the
truth.

ERROR BUDGETS
-------------
A 99.5% target means 0.5% of requests may fail before the objective is
breached; that allowance is the error budget.  `budget_remaining` is
current minus target in percentage points:

    10,000 requests, 20 errors  ->  99.8%  ->  +0.3  healthy
    10,000 requests, 80 errors  ->  99.2%  ->  -0.3  breached

LATENCY AS A PERCENTAGE
-----------------------
The latency objective is a threshold, not a ratio, so it is mapped onto
the same scale: a p95 at or under 500ms scores between 95 and 100, and
anything slower drops below the 95 target, reaching 0 at 1000ms.  Every
objective can then be reported as current, target and healthy.

Evaluation is pure arithmetic.  The health endpoint reads the counters
from the Prometheus registry and passes the numbers in.
"""

from __future__ import annotations

from dataclasses import dataclass

LATENCY_THRESHOLD_MS = 500.0


@dataclass(frozen=True, slots=True)
class SLODefinition:
    name: str
    description: str
    target: float  # percent
    window: str


@dataclass(frozen=True, slots=True)
class SLOStatus:
    """budget_remaining goes negative once the objective is breached."""

    slo: SLODefinition
    current: float
    budget_remaining: float
    healthy: bool


AVAILABILITY_SLO = SLODefinition(
    name="availability",
    description="Requests answered without a server error",
    target=99.5,
    window="30d",
)

VERIFICATION_SLO = SLODefinition(
    name="verification_availability",
    description="Verify calls answered without a server error",
    target=99.9,
    window="30d",
)

LATENCY_SLO = SLODefinition(
    name="latency_p95",
    description=f"95th percentile response time under {LATENCY_THRESHOLD_MS:.0f}ms",
    target=95.0,
    window="30d",
)

ALL_SLOS = [AVAILABILITY_SLO, VERIFICATION_SLO, LATENCY_SLO]


def _status(slo: SLODefinition, current: float) -> SLOStatus:
    return SLOStatus(
        slo=slo,
        current=round(current, 3),
        budget_remaining=round(current - slo.target, 3),
        healthy=current >= slo.target,
    )


def _good_ratio(total: int, bad: int) -> float:
    # No traffic has not breached anything.
    if total == 0:
        return 100.0
    return (total - bad) / total * 100


def evaluate_availability(total_requests: int, error_requests: int) -> SLOStatus:
    return _status(AVAILABILITY_SLO, _good_ratio(total_requests, error_requests))


def evaluate_verification(total_verifications: int, error_verifications: int) -> SLOStatus:
    return _status(
        VERIFICATION_SLO, _good_ratio(total_verifications, error_verifications)
    )


def evaluate_latency(p95_ms: float) -> SLOStatus:
    """Map a p95 latency onto a percentage against the 95% target.

    At or under the threshold the value lands in [95, 100]; over it, the
    value drops linearly below 95 and reaches 0 at twice the threshold.
    """
    overshoot = (p95_ms - LATENCY_THRESHOLD_MS) / LATENCY_THRESHOLD_MS
    if overshoot <= 0:
        current = min(100.0, 95.0 - overshoot * 5.0)
    else:
        current = max(0.0, 95.0 - overshoot * 95.0)
    return _status(LATENCY_SLO, current)
