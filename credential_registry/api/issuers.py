"""Issuer allow-list endpoints.

Only the registry owner (REGISTRY_OWNER) may add or remove issuers.
Looking up an identity's status is public.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.models.principal import Principal
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/issuers", tags=["issuers"])


class IssuerOut(BaseModel):
    identity: str
    authorized: bool


@router.put("/{identity}", response_model=IssuerOut)
async def add_issuer(
    identity: str,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> IssuerOut:
    await registry.authorization.add_issuer(principal.identity, identity)
    return IssuerOut(identity=identity, authorized=True)


@router.delete("/{identity}", response_model=IssuerOut)
async def remove_issuer(
    identity: str,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> IssuerOut:
    """Take an identity off the allow-list.

    Credentials it already issued stay valid, but its delegations stop
    working immediately.
    """
    await registry.authorization.remove_issuer(principal.identity, identity)
    return IssuerOut(identity=identity, authorized=False)


@router.get("/{identity}", response_model=IssuerOut)
async def get_issuer(
    identity: str,
    registry: Annotated[Registry, Depends(get_registry)],
) -> IssuerOut:
    authorized = await registry.authorization.is_authorized_issuer(identity)
    return IssuerOut(identity=identity, authorized=authorized)
