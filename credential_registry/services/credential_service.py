"""Credential store lifecycle: issuance, revocation, renewal, transfer, level.

Every mutation re-derives the caller's rights from the stored record:
the issuer of record revokes, renews and re-levels; the current
recipient transfers.  Delegated issuance stores the *delegator* as issuer,
so rights over a delegated credential stay with the delegating issuer.

Each credential owns one ownership token (token id == credential id)
whose holder always equals `Credential.recipient`.  Issuance allocates the
id, mints the token and writes the record inside one transaction; if any
step fails the counter, token and record are all rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from credential_registry.core.clock import Clock
from credential_registry.core.metrics import CREDENTIAL_MUTATIONS, CREDENTIALS_ISSUED
from credential_registry.models.credential import (
    MAX_LEVEL,
    METADATA_MAX_LEN,
    SKILL_MAX_LEN,
    Credential,
)
from credential_registry.repos.registry_store import CREDENTIAL_COUNTER, RegistryStore
from credential_registry.services.authorization import AuthorizationService
from credential_registry.services.errors import (
    InvalidCredential,
    InvalidLevel,
    NotAuthorized,
    reject,
    require_identity,
    require_text,
    require_uint,
)

logger = logging.getLogger(__name__)


async def load_credential(
    store: RegistryStore,
    credential_id: int,
    *,
    caller: str | None = None,
    log: logging.Logger = logger,
) -> Credential:
    """Fetch a credential or fail with InvalidCredential."""
    credential = await store.get_credential(credential_id)
    if credential is None:
        raise reject(
            log,
            InvalidCredential(f"credential {credential_id} does not exist"),
            caller=caller,
            credential_id=credential_id,
        )
    return credential


class CredentialService:
    def __init__(
        self,
        store: RegistryStore,
        clock: Clock,
        authorization: AuthorizationService,
        *,
        strict_delegate_renewal: bool = False,
    ) -> None:
        self._store = store
        self._clock = clock
        self._authorization = authorization
        self._strict_delegate_renewal = strict_delegate_renewal

    # --- Issuance ---

    async def issue(
        self,
        caller: str,
        recipient: str,
        skill: str,
        expiry_time: int,
        metadata: str,
    ) -> int:
        _validate_issue(recipient, skill, expiry_time, metadata)
        async with self._store.transaction():
            if not await self._store.is_issuer_authorized(caller):
                raise reject(
                    logger,
                    NotAuthorized("caller is not an authorized issuer"),
                    caller=caller,
                )
            credential_id = await self._create(
                issuer=caller,
                recipient=recipient,
                skill=skill,
                expiry_time=expiry_time,
                metadata=metadata,
            )
        CREDENTIALS_ISSUED.labels(path="direct").inc()
        logger.info(
            "Credential issued id=%d issuer=%s recipient=%s skill=%r",
            credential_id,
            caller,
            recipient,
            skill,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return credential_id

    async def issue_as_delegate(
        self,
        caller: str,
        recipient: str,
        skill: str,
        expiry_time: int,
        metadata: str,
    ) -> int:
        _validate_issue(recipient, skill, expiry_time, metadata)
        async with self._store.transaction():
            delegation = await self._authorization.active_delegation(caller)
            if delegation is None:
                raise reject(
                    logger,
                    NotAuthorized("caller is not a valid delegate"),
                    caller=caller,
                )
            credential_id = await self._create(
                issuer=delegation.delegator,
                recipient=recipient,
                skill=skill,
                expiry_time=expiry_time,
                metadata=metadata,
            )
        CREDENTIALS_ISSUED.labels(path="delegate").inc()
        logger.info(
            "Credential issued id=%d issuer=%s via delegate=%s recipient=%s",
            credential_id,
            delegation.delegator,
            caller,
            recipient,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return credential_id

    async def _create(
        self,
        *,
        issuer: str,
        recipient: str,
        skill: str,
        expiry_time: int,
        metadata: str,
    ) -> int:
        credential_id = await self._store.next_id(CREDENTIAL_COUNTER)
        await self._store.mint_token(credential_id, recipient)
        await self._store.put_credential(
            Credential.new(
                id=credential_id,
                recipient=recipient,
                issuer=issuer,
                skill=skill,
                issue_time=self._clock.now(),
                expiry_time=expiry_time,
                metadata=metadata,
            )
        )
        return credential_id

    # --- Issuer-of-record mutations ---

    async def revoke(self, caller: str, credential_id: int) -> Credential:
        """Mark revoked.  Revoking twice is allowed and changes nothing."""
        async with self._store.transaction():
            credential = await self._load_as_issuer(caller, credential_id, "revoke")
            updated = replace(credential, revoked=True)
            await self._store.put_credential(updated)
        CREDENTIAL_MUTATIONS.labels(operation="revoke").inc()
        logger.info(
            "Credential revoked id=%d by=%s",
            credential_id,
            caller,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return updated

    async def renew(
        self, caller: str, credential_id: int, new_expiry: int
    ) -> Credential:
        """Replace the expiry time.

        No floor or ceiling: the new expiry may be in the past or earlier
        than the current one, and revoked credentials may be renewed (they
        still fail verification as revoked).
        """
        require_uint("new_expiry", new_expiry)
        async with self._store.transaction():
            credential = await self._load_as_issuer(caller, credential_id, "renew")
            updated = replace(credential, expiry_time=new_expiry)
            await self._store.put_credential(updated)
        CREDENTIAL_MUTATIONS.labels(operation="renew").inc()
        logger.info(
            "Credential renewed id=%d expiry=%d by=%s",
            credential_id,
            new_expiry,
            caller,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return updated

    async def renew_as_delegate(
        self, caller: str, credential_id: int, new_expiry: int
    ) -> Credential:
        """Renew on the strength of any currently valid delegation.

        By default the delegate's delegator is not compared with the
        credential's issuer of record, so a delegate of issuer A can renew
        credentials issued by issuer B.  With strict_delegate_renewal the
        two must match.
        """
        require_uint("new_expiry", new_expiry)
        async with self._store.transaction():
            delegation = await self._authorization.active_delegation(caller)
            if delegation is None:
                raise reject(
                    logger,
                    NotAuthorized("caller is not a valid delegate"),
                    caller=caller,
                    credential_id=credential_id,
                )
            credential = await load_credential(
                self._store, credential_id, caller=caller
            )
            if (
                self._strict_delegate_renewal
                and delegation.delegator != credential.issuer
            ):
                raise reject(
                    logger,
                    NotAuthorized("delegator is not the issuer of record"),
                    caller=caller,
                    credential_id=credential_id,
                )
            updated = replace(credential, expiry_time=new_expiry)
            await self._store.put_credential(updated)
        CREDENTIAL_MUTATIONS.labels(operation="renew_delegate").inc()
        logger.info(
            "Credential renewed id=%d expiry=%d by delegate=%s of=%s",
            credential_id,
            new_expiry,
            caller,
            delegation.delegator,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return updated

    async def update_level(
        self, caller: str, credential_id: int, new_level: int
    ) -> Credential:
        require_uint("new_level", new_level)
        if new_level > MAX_LEVEL:
            raise reject(
                logger,
                InvalidLevel(f"level must be at most {MAX_LEVEL}"),
                caller=caller,
                credential_id=credential_id,
            )
        async with self._store.transaction():
            credential = await self._load_as_issuer(
                caller, credential_id, "change the level of"
            )
            updated = replace(credential, level=new_level)
            await self._store.put_credential(updated)
        CREDENTIAL_MUTATIONS.labels(operation="level").inc()
        logger.info(
            "Credential level set id=%d level=%d by=%s",
            credential_id,
            new_level,
            caller,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return updated

    async def _load_as_issuer(
        self, caller: str, credential_id: int, action: str
    ) -> Credential:
        credential = await load_credential(self._store, credential_id, caller=caller)
        if caller != credential.issuer:
            raise reject(
                logger,
                NotAuthorized(f"only the issuer of record can {action} a credential"),
                caller=caller,
                credential_id=credential_id,
            )
        return credential

    # --- Recipient mutation ---

    async def transfer(
        self, caller: str, credential_id: int, new_recipient: str
    ) -> Credential:
        """Hand the credential and its ownership token to `new_recipient`."""
        require_identity("new_recipient", new_recipient)
        async with self._store.transaction():
            credential = await load_credential(
                self._store, credential_id, caller=caller
            )
            if caller != credential.recipient:
                raise reject(
                    logger,
                    NotAuthorized("only the recipient can transfer a credential"),
                    caller=caller,
                    credential_id=credential_id,
                )
            await self._store.move_token(credential_id, new_recipient)
            updated = replace(credential, recipient=new_recipient)
            await self._store.put_credential(updated)
        CREDENTIAL_MUTATIONS.labels(operation="transfer").inc()
        logger.info(
            "Credential transferred id=%d from=%s to=%s",
            credential_id,
            caller,
            new_recipient,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return updated

    # --- Read-only queries ---

    async def get_credential(self, credential_id: int) -> Credential | None:
        """Stored record as-is, without validity checks."""
        async with self._store.transaction():
            return await self._store.get_credential(credential_id)

    async def get_token_owner(self, credential_id: int) -> str | None:
        async with self._store.transaction():
            return await self._store.get_token_owner(credential_id)


def _validate_issue(
    recipient: str, skill: str, expiry_time: int, metadata: str
) -> None:
    require_identity("recipient", recipient)
    require_text("skill", skill, SKILL_MAX_LEN)
    require_uint("expiry_time", expiry_time)
    require_text("metadata", metadata, METADATA_MAX_LEN)
