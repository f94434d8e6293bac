"""Dispute filing and issuer response.

A recipient may file one dispute per credential, ever: once a record
exists (pending, resolved, rejected or anything else the issuer wrote),
filing again fails with AlreadyDisputed.  The issuer's response overwrites
the response text and status; neither is checked against a fixed set of
values.  Disputes never touch `revoked` or `expiry_time`.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from credential_registry.core.clock import Clock
from credential_registry.core.metrics import DISPUTES
from credential_registry.models.dispute import (
    REASON_MAX_LEN,
    RESPONSE_MAX_LEN,
    STATUS_MAX_LEN,
    Dispute,
)
from credential_registry.repos.registry_store import RegistryStore
from credential_registry.services.credential_service import load_credential
from credential_registry.services.errors import (
    AlreadyDisputed,
    NoDispute,
    NotAuthorized,
    NotRecipient,
    reject,
    require_text,
)

logger = logging.getLogger(__name__)


class DisputeService:
    def __init__(self, store: RegistryStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def file_dispute(
        self, caller: str, credential_id: int, reason: str
    ) -> Dispute:
        require_text("reason", reason, REASON_MAX_LEN)
        async with self._store.transaction():
            credential = await load_credential(
                self._store, credential_id, caller=caller, log=logger
            )
            if caller != credential.recipient:
                raise reject(
                    logger,
                    NotRecipient("only the recipient can dispute a credential"),
                    caller=caller,
                    credential_id=credential_id,
                )
            if await self._store.get_dispute(credential_id) is not None:
                raise reject(
                    logger,
                    AlreadyDisputed(
                        f"credential {credential_id} has already been disputed"
                    ),
                    caller=caller,
                    credential_id=credential_id,
                )
            dispute = Dispute(
                credential_id=credential_id,
                disputant=caller,
                reason=reason,
                timestamp=self._clock.now(),
            )
            await self._store.put_dispute(dispute)
        DISPUTES.labels(action="filed").inc()
        logger.info(
            "Dispute filed credential=%d by=%s",
            credential_id,
            caller,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return dispute

    async def respond_to_dispute(
        self, caller: str, credential_id: int, response: str, new_status: str
    ) -> Dispute:
        require_text("response", response, RESPONSE_MAX_LEN)
        require_text("status", new_status, STATUS_MAX_LEN)
        async with self._store.transaction():
            credential = await load_credential(
                self._store, credential_id, caller=caller, log=logger
            )
            if caller != credential.issuer:
                raise reject(
                    logger,
                    NotAuthorized("only the issuer of record can respond"),
                    caller=caller,
                    credential_id=credential_id,
                )
            dispute = await self._store.get_dispute(credential_id)
            if dispute is None:
                raise reject(
                    logger,
                    NoDispute(f"credential {credential_id} has no dispute"),
                    caller=caller,
                    credential_id=credential_id,
                )
            updated = replace(dispute, issuer_response=response, status=new_status)
            await self._store.put_dispute(updated)
        DISPUTES.labels(action="responded").inc()
        logger.info(
            "Dispute answered credential=%d status=%r by=%s",
            credential_id,
            new_status,
            caller,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return updated

    async def get_dispute(self, credential_id: int) -> Dispute | None:
        async with self._store.transaction():
            return await self._store.get_dispute(credential_id)
