from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.models.delegation import Delegation
from credential_registry.models.principal import Principal
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/delegations", tags=["delegations"])


class DelegateIn(BaseModel):
    delegate: str
    expiry_offset: int


class DelegationOut(BaseModel):
    delegate: str
    delegator: str
    expiry: int
    active: bool
    # Live answer: active, unexpired and delegator still authorized.
    valid: bool


async def _delegation_out(registry: Registry, delegation: Delegation) -> DelegationOut:
    return DelegationOut(
        delegate=delegation.delegate,
        delegator=delegation.delegator,
        expiry=delegation.expiry,
        active=delegation.active,
        valid=await registry.authorization.is_valid_delegate(delegation.delegate),
    )


@router.post("", response_model=DelegationOut, status_code=status.HTTP_201_CREATED)
async def delegate_authority(
    body: DelegateIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> DelegationOut:
    """Grant issuance rights to `delegate` for `expiry_offset` ticks.

    Replaces whatever delegation the delegate held before.
    """
    delegation = await registry.authorization.delegate_authority(
        principal.identity, body.delegate, body.expiry_offset
    )
    return await _delegation_out(registry, delegation)


@router.delete("/{delegate}", response_model=DelegationOut)
async def revoke_delegation(
    delegate: str,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> DelegationOut:
    delegation = await registry.authorization.revoke_delegation(
        principal.identity, delegate
    )
    return await _delegation_out(registry, delegation)


@router.get("/{delegate}", response_model=DelegationOut)
async def get_delegation(
    delegate: str,
    registry: Annotated[Registry, Depends(get_registry)],
) -> DelegationOut:
    delegation = await registry.authorization.get_delegation(delegate)
    if delegation is None:
        raise HTTPException(status_code=404, detail="delegation not found")
    return await _delegation_out(registry, delegation)
