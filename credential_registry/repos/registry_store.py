"""Keyed registry storage.

Every registry is a point-lookup map: by credential id, by identity, or by
a (credential id, identity) pair.  No method lists or scans records; an
"all credentials of issuer X" view belongs to an external index fed by
the API's callers.

Atomicity
---------
Services wrap each operation in `async with store.transaction():`.  The
transaction is scoped to the whole store, not to a key, because some
operations read two credentials (upgrade paths) and must see one
consistent state.  If the block raises, every write made inside it is
undone.  A transaction opened while the same store already has one open in
the current task joins it instead of deadlocking, so one service can call
another's public operation.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from contextvars import ContextVar
from typing import Any, Protocol

from credential_registry.models.auxiliary import (
    Achievement,
    CategoryTags,
    Endorsement,
    NotificationSettings,
    Prerequisites,
    Rating,
    UpgradePath,
    VerificationRecord,
)
from credential_registry.models.credential import Credential
from credential_registry.models.delegation import Delegation
from credential_registry.models.dispute import Dispute

CREDENTIAL_COUNTER = "credential"
ACHIEVEMENT_COUNTER = "achievement"

# The store whose transaction is open in the current task, if any.
active_store: ContextVar[object | None] = ContextVar(
    "active_registry_store", default=None
)


class TokenAlreadyMintedError(ValueError):
    pass


class RegistryStore(Protocol):
    def transaction(self) -> AbstractAsyncContextManager[None]: ...

    async def next_id(self, counter: str) -> int: ...

    async def is_issuer_authorized(self, identity: str) -> bool: ...
    async def set_issuer_authorized(self, identity: str, authorized: bool) -> None: ...

    async def get_delegation(self, delegate: str) -> Delegation | None: ...
    async def put_delegation(self, delegation: Delegation) -> None: ...

    async def get_credential(self, credential_id: int) -> Credential | None: ...
    async def put_credential(self, credential: Credential) -> None: ...

    async def get_token_owner(self, credential_id: int) -> str | None: ...
    async def mint_token(self, credential_id: int, owner: str) -> None: ...
    async def move_token(self, credential_id: int, owner: str) -> None: ...

    async def get_dispute(self, credential_id: int) -> Dispute | None: ...
    async def put_dispute(self, dispute: Dispute) -> None: ...

    async def get_rating(self, credential_id: int, rater: str) -> Rating | None: ...
    async def put_rating(self, rating: Rating) -> None: ...

    async def get_achievement(self, achievement_id: int) -> Achievement | None: ...
    async def put_achievement(self, achievement: Achievement) -> None: ...

    async def get_category_tags(self, credential_id: int) -> CategoryTags | None: ...
    async def put_category_tags(self, category_tags: CategoryTags) -> None: ...

    async def get_prerequisites(self, credential_id: int) -> Prerequisites | None: ...
    async def put_prerequisites(self, prerequisites: Prerequisites) -> None: ...

    async def get_upgrade_path(self, source_id: int) -> UpgradePath | None: ...
    async def put_upgrade_path(self, path: UpgradePath) -> None: ...

    async def get_endorsement(
        self, credential_id: int, endorser: str
    ) -> Endorsement | None: ...
    async def put_endorsement(self, endorsement: Endorsement) -> None: ...

    async def get_verification(
        self, credential_id: int, verifier: str
    ) -> VerificationRecord | None: ...
    async def put_verification(self, record: VerificationRecord) -> None: ...

    async def get_notification_settings(
        self, credential_id: int, identity: str
    ) -> NotificationSettings | None: ...
    async def put_notification_settings(
        self, settings: NotificationSettings
    ) -> None: ...


_MISSING = object()


class InMemoryRegistryStore:
    """Single-process store for dev and tests.

    HOW ROLLBACK WORKS
    ------------------
    There is no database underneath, so atomicity comes from an undo
    journal.  Every write goes through `_write`, which first records how to
    put the key back the way it was:

      key was absent   -> journal "pop the key"
      key had a value  -> journal "restore the old value"

    Issuance is the case that needs it: the id counter, the ownership token
    and the credential record are three separate writes.  If the third one
    fails, replaying the journal newest-first leaves the counter, token
    table and credential table exactly as they were, so no id is burned
    and no orphan token exists.

    WHY ONE LOCK FOR THE WHOLE STORE
    --------------------------------
    The journal belongs to whichever transaction is open, so two
    interleaved transactions would undo each other's writes.  The asyncio
    Lock admits one transaction at a time.  Store methods never await
    anything else, so the lock is held only for the length of one
    operation's checks and writes.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._undo: list[Callable[[], None]] | None = None
        self.reset()

    def reset(self) -> None:
        self._counters: dict[str, int] = {}
        self._issuers: dict[str, bool] = {}
        self._delegations: dict[str, Delegation] = {}
        self._credentials: dict[int, Credential] = {}
        self._token_owners: dict[int, str] = {}
        self._disputes: dict[int, Dispute] = {}
        self._ratings: dict[tuple[int, str], Rating] = {}
        self._achievements: dict[int, Achievement] = {}
        self._category_tags: dict[int, CategoryTags] = {}
        self._prerequisites: dict[int, Prerequisites] = {}
        self._upgrade_paths: dict[int, UpgradePath] = {}
        self._endorsements: dict[tuple[int, str], Endorsement] = {}
        self._verifications: dict[tuple[int, str], VerificationRecord] = {}
        self._notifications: dict[tuple[int, str], NotificationSettings] = {}

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if active_store.get() is self:
            yield
            return

        async with self._lock:
            token = active_store.set(self)
            self._undo = []
            try:
                yield
            except BaseException:
                # Newest first: a key written twice ends at its original value.
                for restore in reversed(self._undo):
                    restore()
                raise
            finally:
                self._undo = None
                active_store.reset(token)

    def _write(self, table: dict[Any, Any], key: Any, value: Any) -> None:
        # Writes outside a transaction are not journaled.
        if self._undo is not None:
            previous = table.get(key, _MISSING)
            if previous is _MISSING:
                self._undo.append(lambda: table.pop(key, None))
            else:
                self._undo.append(lambda: table.__setitem__(key, previous))
        table[key] = value

    async def next_id(self, counter: str) -> int:
        current = self._counters.get(counter, 0)
        self._write(self._counters, counter, current + 1)
        return current

    async def is_issuer_authorized(self, identity: str) -> bool:
        return self._issuers.get(identity, False)

    async def set_issuer_authorized(self, identity: str, authorized: bool) -> None:
        self._write(self._issuers, identity, authorized)

    async def get_delegation(self, delegate: str) -> Delegation | None:
        return self._delegations.get(delegate)

    async def put_delegation(self, delegation: Delegation) -> None:
        self._write(self._delegations, delegation.delegate, delegation)

    async def get_credential(self, credential_id: int) -> Credential | None:
        return self._credentials.get(credential_id)

    async def put_credential(self, credential: Credential) -> None:
        self._write(self._credentials, credential.id, credential)

    async def get_token_owner(self, credential_id: int) -> str | None:
        return self._token_owners.get(credential_id)

    async def mint_token(self, credential_id: int, owner: str) -> None:
        if credential_id in self._token_owners:
            raise TokenAlreadyMintedError(f"token {credential_id} already minted")
        self._write(self._token_owners, credential_id, owner)

    async def move_token(self, credential_id: int, owner: str) -> None:
        if credential_id not in self._token_owners:
            raise KeyError(f"token {credential_id} not minted")
        self._write(self._token_owners, credential_id, owner)

    async def get_dispute(self, credential_id: int) -> Dispute | None:
        return self._disputes.get(credential_id)

    async def put_dispute(self, dispute: Dispute) -> None:
        self._write(self._disputes, dispute.credential_id, dispute)

    async def get_rating(self, credential_id: int, rater: str) -> Rating | None:
        return self._ratings.get((credential_id, rater))

    async def put_rating(self, rating: Rating) -> None:
        self._write(self._ratings, (rating.credential_id, rating.rater), rating)

    async def get_achievement(self, achievement_id: int) -> Achievement | None:
        return self._achievements.get(achievement_id)

    async def put_achievement(self, achievement: Achievement) -> None:
        self._write(self._achievements, achievement.id, achievement)

    async def get_category_tags(self, credential_id: int) -> CategoryTags | None:
        return self._category_tags.get(credential_id)

    async def put_category_tags(self, category_tags: CategoryTags) -> None:
        self._write(self._category_tags, category_tags.credential_id, category_tags)

    async def get_prerequisites(self, credential_id: int) -> Prerequisites | None:
        return self._prerequisites.get(credential_id)

    async def put_prerequisites(self, prerequisites: Prerequisites) -> None:
        self._write(self._prerequisites, prerequisites.credential_id, prerequisites)

    async def get_upgrade_path(self, source_id: int) -> UpgradePath | None:
        return self._upgrade_paths.get(source_id)

    async def put_upgrade_path(self, path: UpgradePath) -> None:
        self._write(self._upgrade_paths, path.source_id, path)

    async def get_endorsement(
        self, credential_id: int, endorser: str
    ) -> Endorsement | None:
        return self._endorsements.get((credential_id, endorser))

    async def put_endorsement(self, endorsement: Endorsement) -> None:
        key = (endorsement.credential_id, endorsement.endorser)
        self._write(self._endorsements, key, endorsement)

    async def get_verification(
        self, credential_id: int, verifier: str
    ) -> VerificationRecord | None:
        return self._verifications.get((credential_id, verifier))

    async def put_verification(self, record: VerificationRecord) -> None:
        key = (record.credential_id, record.verifier)
        self._write(self._verifications, key, record)

    async def get_notification_settings(
        self, credential_id: int, identity: str
    ) -> NotificationSettings | None:
        return self._notifications.get((credential_id, identity))

    async def put_notification_settings(self, settings: NotificationSettings) -> None:
        key = (settings.credential_id, settings.identity)
        self._write(self._notifications, key, settings)
