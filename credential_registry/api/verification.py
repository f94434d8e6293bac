"""Verification endpoints.

GET is the anonymous check anyone can run against a credential id.  POST
runs the same check as the authenticated caller and, when the credential
is valid, bumps that caller's verification counter.  Failed checks come
back as InvalidCredential (404), CredentialRevoked (410) or
CredentialExpired (410) with the registry's error body.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from credential_registry.api.credentials import CredentialOut, credential_out
from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.api.ratelimit import require_rate_limit
from credential_registry.models.principal import Principal
from credential_registry.services.rate_limiter import VERIFY_LIMIT
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/credentials", tags=["verification"])


class CredentialVerifyOut(BaseModel):
    valid: bool
    credential: CredentialOut


class VerificationRecordOut(BaseModel):
    credential_id: int
    verifier: str
    count: int
    last_verified: int | None


@router.get("/{credential_id}/verify", response_model=CredentialVerifyOut)
async def verify_credential(
    credential_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialVerifyOut:
    credential = await registry.verification.verify(credential_id)
    return CredentialVerifyOut(valid=True, credential=credential_out(credential))


@router.post(
    "/{credential_id}/verify",
    response_model=CredentialVerifyOut,
    dependencies=[Depends(require_rate_limit(VERIFY_LIMIT, scope="verify"))],
)
async def verify_and_log(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CredentialVerifyOut:
    credential = await registry.verification.verify_and_log(
        principal.identity, credential_id
    )
    return CredentialVerifyOut(valid=True, credential=credential_out(credential))


@router.get(
    "/{credential_id}/verifications/{verifier}",
    response_model=VerificationRecordOut,
)
async def get_verification_record(
    credential_id: int,
    verifier: str,
    registry: Annotated[Registry, Depends(get_registry)],
) -> VerificationRecordOut:
    """Logged verifications by `verifier`.  Never-verified pairs report count 0."""
    record = await registry.verification.get_verification_record(
        credential_id, verifier
    )
    if record is None:
        return VerificationRecordOut(
            credential_id=credential_id,
            verifier=verifier,
            count=0,
            last_verified=None,
        )
    return VerificationRecordOut(
        credential_id=record.credential_id,
        verifier=record.verifier,
        count=record.count,
        last_verified=record.last_verified,
    )
