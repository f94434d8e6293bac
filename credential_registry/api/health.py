"""Liveness and readiness probes.

/health always answers 200 while the process can respond.  Its body
reports dependency checks and the three SLOs, computed from this
process's Prometheus counters only: other replicas are not included
and counters reset on restart.

/ready answers 503 when the registry store is unreachable.  The store is
PostgreSQL when DATABASE_URL is set; without it the in-memory store is
always ready.  Redis only backs rate limiting, so it is never critical.
"""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import APIRouter, Response, status
from prometheus_client import REGISTRY
from prometheus_client.samples import Sample

from credential_registry.core.slo import (
    evaluate_availability,
    evaluate_latency,
    evaluate_verification,
)
from credential_registry.db.engine import check_database, engine
from credential_registry.db.redis import check_redis

router = APIRouter(tags=["health"])

_VERIFY_ENDPOINT = "/v1/credentials/{credential_id}/verify"


def _samples(sample_name: str, label_filter: dict | None = None) -> Iterator[Sample]:
    """Every sample called `sample_name` whose labels match the filter."""
    for metric in REGISTRY.collect():
        for sample in metric.samples:
            if sample.name != sample_name:
                continue
            if label_filter and not all(
                sample.labels.get(k) == v for k, v in label_filter.items()
            ):
                continue
            yield sample


def _sum_samples(sample_name: str, label_filter: dict | None = None) -> float:
    return sum(s.value for s in _samples(sample_name, label_filter))


def _requests_and_errors(label_filter: dict | None = None) -> tuple[int, int]:
    """Request count and 5xx count, optionally narrowed to one endpoint."""
    total = errors = 0.0
    for sample in _samples("http_requests_total", label_filter):
        total += sample.value
        if sample.labels.get("status_code", "").startswith("5"):
            errors += sample.value
    return int(total), int(errors)


def _status_of(result: bool | None) -> str:
    if result is None:
        return "not_configured"
    return "ok" if result else "degraded"


@router.get("/health")
async def health() -> dict:
    checks = {
        "database": _status_of(await check_database() if engine is not None else None),
        "redis": _status_of(await check_redis()),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"

    availability_status = evaluate_availability(*_requests_and_errors())
    verification_status = evaluate_verification(
        *_requests_and_errors({"endpoint": _VERIFY_ENDPOINT})
    )

    # p95 approximated as twice the mean; the client library exposes only
    # sum and count here.
    duration_sum = _sum_samples("http_request_duration_seconds_sum")
    duration_count = _sum_samples("http_request_duration_seconds_count")
    p95_estimate_ms = (
        (duration_sum / duration_count) * 1000 * 2.0 if duration_count > 0 else 0.0
    )
    latency_status = evaluate_latency(p95_estimate_ms)

    slos = {
        s.slo.name: {
            "current": s.current,
            "target": s.slo.target,
            "healthy": s.healthy,
        }
        for s in (availability_status, verification_status, latency_status)
    }

    return {"status": overall, "checks": checks, "slos": slos}


@router.get("/ready")
async def ready() -> Response:
    if engine is not None and not await check_database():
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
