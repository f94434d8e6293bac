"""Prometheus scrape endpoint (text exposition format).

Exposes HTTP metrics plus the registry counters from core/metrics.py:
issuance by path, lifecycle mutations, verification outcomes, dispute
activity and rejected calls by error name.  Restrict access at the
ingress in production.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
