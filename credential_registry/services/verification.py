"""Verification: is this credential valid right now?

Validity is never stored.  It is computed from the record and the host
time counter on every call, in a fixed order:

    exists?   else InvalidCredential
    revoked?  then CredentialRevoked   (wins even when also expired)
    now >= expiry_time?  then CredentialExpired

`verify_and_log` runs the same checks and, only on success, bumps the
per-(credential, verifier) counter and stamps the verification time.
"""

from __future__ import annotations

import logging

from credential_registry.core.clock import Clock
from credential_registry.core.metrics import VERIFICATIONS
from credential_registry.models.auxiliary import VerificationRecord
from credential_registry.models.credential import Credential
from credential_registry.repos.registry_store import RegistryStore
from credential_registry.services.errors import (
    CredentialExpired,
    CredentialRevoked,
    InvalidCredential,
    reject,
)

logger = logging.getLogger(__name__)


class VerificationService:
    def __init__(self, store: RegistryStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def verify(self, credential_id: int) -> Credential:
        async with self._store.transaction():
            credential = await self._check(credential_id, self._clock.now())
        VERIFICATIONS.labels(result="valid", logged="false").inc()
        return credential

    async def verify_and_log(self, caller: str, credential_id: int) -> Credential:
        async with self._store.transaction():
            now = self._clock.now()
            credential = await self._check(
                credential_id, now, caller=caller, logged=True
            )
            previous = await self._store.get_verification(credential_id, caller)
            count = previous.count + 1 if previous is not None else 1
            await self._store.put_verification(
                VerificationRecord(
                    credential_id=credential_id,
                    verifier=caller,
                    count=count,
                    last_verified=now,
                )
            )
        VERIFICATIONS.labels(result="valid", logged="true").inc()
        logger.info(
            "Credential verified id=%d verifier=%s count=%d",
            credential_id,
            caller,
            count,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return credential

    async def get_verification_record(
        self, credential_id: int, verifier: str
    ) -> VerificationRecord | None:
        async with self._store.transaction():
            return await self._store.get_verification(credential_id, verifier)

    async def _check(
        self,
        credential_id: int,
        now: int,
        *,
        caller: str | None = None,
        logged: bool = False,
    ) -> Credential:
        credential = await self._store.get_credential(credential_id)
        if credential is None:
            self._fail("unknown", logged)
            raise reject(
                logger,
                InvalidCredential(f"credential {credential_id} does not exist"),
                caller=caller,
                credential_id=credential_id,
            )
        if credential.revoked:
            self._fail("revoked", logged)
            raise reject(
                logger,
                CredentialRevoked(f"credential {credential_id} has been revoked"),
                caller=caller,
                credential_id=credential_id,
            )
        if now >= credential.expiry_time:
            self._fail("expired", logged)
            raise reject(
                logger,
                CredentialExpired(
                    f"credential {credential_id} expired at {credential.expiry_time}"
                ),
                caller=caller,
                credential_id=credential_id,
            )
        return credential

    @staticmethod
    def _fail(result: str, logged: bool) -> None:
        VERIFICATIONS.labels(result=result, logged=str(logged).lower()).inc()
