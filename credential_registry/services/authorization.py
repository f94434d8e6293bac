"""Issuer allow-list and delegated issuance authority.

Who may act as an issuer is derived from two independent lookups:

  1. the allow-list (identity → authorized), managed by the registry owner
  2. the delegation table (delegate → delegator, expiry, active)

A delegation is only usable while its delegator is *still* on the
allow-list.  That is checked live on every call: removing an issuer
silently disables every delegation they granted, without touching the
delegation records themselves.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from credential_registry.core.clock import Clock
from credential_registry.models.delegation import Delegation
from credential_registry.repos.registry_store import RegistryStore
from credential_registry.services.errors import (
    NotAuthorized,
    reject,
    require_identity,
    require_uint,
)

logger = logging.getLogger(__name__)


class AuthorizationService:
    def __init__(self, store: RegistryStore, clock: Clock, owner: str) -> None:
        self._store = store
        self._clock = clock
        self._owner = owner

    @property
    def owner(self) -> str:
        return self._owner

    # --- Issuer allow-list (owner only) ---

    async def add_issuer(self, caller: str, identity: str) -> None:
        require_identity("identity", identity)
        async with self._store.transaction():
            self._require_owner(caller)
            await self._store.set_issuer_authorized(identity, True)
        logger.info("Issuer authorized identity=%s by=%s", identity, caller)

    async def remove_issuer(self, caller: str, identity: str) -> None:
        require_identity("identity", identity)
        async with self._store.transaction():
            self._require_owner(caller)
            await self._store.set_issuer_authorized(identity, False)
        logger.info("Issuer deauthorized identity=%s by=%s", identity, caller)

    async def is_authorized_issuer(self, identity: str) -> bool:
        async with self._store.transaction():
            return await self._store.is_issuer_authorized(identity)

    def _require_owner(self, caller: str) -> None:
        if caller != self._owner:
            raise reject(
                logger,
                NotAuthorized("only the registry owner can manage issuers"),
                caller=caller,
            )

    # --- Delegation ---

    async def delegate_authority(
        self, caller: str, delegate: str, expiry_offset: int
    ) -> Delegation:
        """Grant `delegate` issuance rights until now + expiry_offset.

        Overwrites any previous delegation held by `delegate`, including
        one granted by a different issuer.
        """
        require_identity("delegate", delegate)
        require_uint("expiry_offset", expiry_offset)
        async with self._store.transaction():
            if not await self._store.is_issuer_authorized(caller):
                raise reject(
                    logger,
                    NotAuthorized("only authorized issuers can delegate"),
                    caller=caller,
                )
            delegation = Delegation(
                delegate=delegate,
                delegator=caller,
                expiry=self._clock.now() + expiry_offset,
            )
            await self._store.put_delegation(delegation)
        logger.info(
            "Delegation granted delegate=%s delegator=%s expiry=%d",
            delegate,
            caller,
            delegation.expiry,
        )
        return delegation

    async def revoke_delegation(self, caller: str, delegate: str) -> Delegation:
        async with self._store.transaction():
            existing = await self._store.get_delegation(delegate)
            if existing is None or existing.delegator != caller:
                raise reject(
                    logger,
                    NotAuthorized("only the delegator can revoke a delegation"),
                    caller=caller,
                )
            updated = replace(existing, active=False)
            await self._store.put_delegation(updated)
        logger.info("Delegation revoked delegate=%s delegator=%s", delegate, caller)
        return updated

    async def get_delegation(self, delegate: str) -> Delegation | None:
        async with self._store.transaction():
            return await self._store.get_delegation(delegate)

    async def active_delegation(self, identity: str) -> Delegation | None:
        """Return the identity's delegation if it is usable right now."""
        async with self._store.transaction():
            delegation = await self._store.get_delegation(identity)
            if delegation is None or not delegation.active:
                return None
            if self._clock.now() >= delegation.expiry:
                return None
            if not await self._store.is_issuer_authorized(delegation.delegator):
                return None
            return delegation

    async def is_valid_delegate(self, identity: str) -> bool:
        return await self.active_delegation(identity) is not None
