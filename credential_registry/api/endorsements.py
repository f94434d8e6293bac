from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.models.auxiliary import Endorsement
from credential_registry.models.principal import Principal
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/credentials", tags=["endorsements"])


class EndorsementOut(BaseModel):
    credential_id: int
    endorser: str
    timestamp: int


def _endorsement_out(endorsement: Endorsement) -> EndorsementOut:
    return EndorsementOut(
        credential_id=endorsement.credential_id,
        endorser=endorsement.endorser,
        timestamp=endorsement.timestamp,
    )


@router.post(
    "/{credential_id}/endorsements",
    response_model=EndorsementOut,
    status_code=status.HTTP_201_CREATED,
)
async def endorse_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> EndorsementOut:
    """Any authorized issuer may endorse any existing credential."""
    endorsement = await registry.auxiliary.endorse(principal.identity, credential_id)
    return _endorsement_out(endorsement)


@router.get(
    "/{credential_id}/endorsements/{endorser}", response_model=EndorsementOut
)
async def get_endorsement(
    credential_id: int,
    endorser: str,
    registry: Annotated[Registry, Depends(get_registry)],
) -> EndorsementOut:
    endorsement = await registry.auxiliary.get_endorsement(credential_id, endorser)
    if endorsement is None:
        raise HTTPException(status_code=404, detail="endorsement not found")
    return _endorsement_out(endorsement)
