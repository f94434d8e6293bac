"""Credential issuance and lifecycle endpoints.

- POST /v1/credentials                        issue as an authorized issuer
- POST /v1/credentials/delegated              issue as a delegate
- GET  /v1/credentials/{id}                   stored record (public, no validity check)
- GET  /v1/credentials/{id}/owner             ownership token holder (public)
- POST /v1/credentials/{id}/revoke            issuer of record
- POST /v1/credentials/{id}/renew             issuer of record
- POST /v1/credentials/{id}/renew-delegated   any valid delegate
- POST /v1/credentials/{id}/transfer          current recipient
- PUT  /v1/credentials/{id}/level             issuer of record

Every route acts as the JWT subject.  Argument bounds (text lengths,
non-negative numbers) are enforced by the services so that violations
come back as InvalidInput with the registry's error body.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.api.ratelimit import require_rate_limit
from credential_registry.models.credential import Credential
from credential_registry.models.principal import Principal
from credential_registry.services.rate_limiter import ISSUE_LIMIT
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/credentials", tags=["credentials"])

_issue_limit = require_rate_limit(ISSUE_LIMIT, scope="issue")


class CredentialIssueIn(BaseModel):
    recipient: str
    skill: str
    expiry_time: int
    metadata: str = ""


class CredentialIssueOut(BaseModel):
    id: int


class CredentialOut(BaseModel):
    id: int
    recipient: str
    issuer: str
    skill: str
    issue_time: int
    expiry_time: int
    metadata: str
    revoked: bool
    level: int


class TokenOwnerOut(BaseModel):
    credential_id: int
    owner: str


class RenewIn(BaseModel):
    new_expiry: int


class TransferIn(BaseModel):
    new_recipient: str


class LevelIn(BaseModel):
    level: int


def credential_out(credential: Credential) -> CredentialOut:
    return CredentialOut(
        id=credential.id,
        recipient=credential.recipient,
        issuer=credential.issuer,
        skill=credential.skill,
        issue_time=credential.issue_time,
        expiry_time=credential.expiry_time,
        metadata=credential.metadata,
        revoked=credential.revoked,
        level=credential.level,
    )


# --- Issuance ---


@router.post(
    "",
    response_model=CredentialIssueOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_issue_limit)],
)
async def issue_credential(
    body: CredentialIssueIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialIssueOut:
    credential_id = await registry.credentials.issue(
        principal.identity,
        body.recipient,
        body.skill,
        body.expiry_time,
        body.metadata,
    )
    return CredentialIssueOut(id=credential_id)


@router.post(
    "/delegated",
    response_model=CredentialIssueOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_issue_limit)],
)
async def issue_credential_as_delegate(
    body: CredentialIssueIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialIssueOut:
    """Issue on a delegator's behalf.  The delegator becomes the issuer of record."""
    credential_id = await registry.credentials.issue_as_delegate(
        principal.identity,
        body.recipient,
        body.skill,
        body.expiry_time,
        body.metadata,
    )
    return CredentialIssueOut(id=credential_id)


# --- Public reads ---


@router.get("/{credential_id}", response_model=CredentialOut)
async def get_credential(
    credential_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialOut:
    credential = await registry.credentials.get_credential(credential_id)
    if credential is None:
        raise HTTPException(status_code=404, detail="credential not found")
    return credential_out(credential)


@router.get("/{credential_id}/owner", response_model=TokenOwnerOut)
async def get_token_owner(
    credential_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> TokenOwnerOut:
    owner = await registry.credentials.get_token_owner(credential_id)
    if owner is None:
        raise HTTPException(status_code=404, detail="token not found")
    return TokenOwnerOut(credential_id=credential_id, owner=owner)


# --- Lifecycle ---


@router.post("/{credential_id}/revoke", response_model=CredentialOut)
async def revoke_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialOut:
    credential = await registry.credentials.revoke(principal.identity, credential_id)
    return credential_out(credential)


@router.post("/{credential_id}/renew", response_model=CredentialOut)
async def renew_credential(
    credential_id: int,
    body: RenewIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialOut:
    credential = await registry.credentials.renew(
        principal.identity, credential_id, body.new_expiry
    )
    return credential_out(credential)


@router.post("/{credential_id}/renew-delegated", response_model=CredentialOut)
async def renew_credential_as_delegate(
    credential_id: int,
    body: RenewIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialOut:
    credential = await registry.credentials.renew_as_delegate(
        principal.identity, credential_id, body.new_expiry
    )
    return credential_out(credential)


@router.post("/{credential_id}/transfer", response_model=CredentialOut)
async def transfer_credential(
    credential_id: int,
    body: TransferIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialOut:
    credential = await registry.credentials.transfer(
        principal.identity, credential_id, body.new_recipient
    )
    return credential_out(credential)


@router.put("/{credential_id}/level", response_model=CredentialOut)
async def update_credential_level(
    credential_id: int,
    body: LevelIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialOut:
    credential = await registry.credentials.update_level(
        principal.identity, credential_id, body.level
    )
    return credential_out(credential)
