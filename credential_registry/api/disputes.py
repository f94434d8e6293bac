"""Dispute endpoints.

The recipient files (once per credential, ever); the issuer of record
responds with free-form text and a free-form status.  Reading a dispute
is public.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.api.ratelimit import require_rate_limit
from credential_registry.models.dispute import Dispute
from credential_registry.models.principal import Principal
from credential_registry.services.rate_limiter import FEEDBACK_LIMIT
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/credentials", tags=["disputes"])


class DisputeIn(BaseModel):
    reason: str


class DisputeResponseIn(BaseModel):
    response: str
    status: str


class DisputeOut(BaseModel):
    credential_id: int
    disputant: str
    reason: str
    timestamp: int
    status: str
    issuer_response: str
    disputed: bool


def _dispute_out(dispute: Dispute) -> DisputeOut:
    return DisputeOut(
        credential_id=dispute.credential_id,
        disputant=dispute.disputant,
        reason=dispute.reason,
        timestamp=dispute.timestamp,
        status=dispute.status,
        issuer_response=dispute.issuer_response,
        disputed=dispute.disputed,
    )


@router.post(
    "/{credential_id}/dispute",
    response_model=DisputeOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit(FEEDBACK_LIMIT, scope="dispute"))],
)
async def file_dispute(
    credential_id: int,
    body: DisputeIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> DisputeOut:
    dispute = await registry.disputes.file_dispute(
        principal.identity, credential_id, body.reason
    )
    return _dispute_out(dispute)


@router.post("/{credential_id}/dispute/response", response_model=DisputeOut)
async def respond_to_dispute(
    credential_id: int,
    body: DisputeResponseIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> DisputeOut:
    dispute = await registry.disputes.respond_to_dispute(
        principal.identity, credential_id, body.response, body.status
    )
    return _dispute_out(dispute)


@router.get("/{credential_id}/dispute", response_model=DisputeOut)
async def get_dispute(
    credential_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> DisputeOut:
    dispute = await registry.disputes.get_dispute(credential_id)
    if dispute is None:
        raise HTTPException(status_code=404, detail="dispute not found")
    return _dispute_out(dispute)
