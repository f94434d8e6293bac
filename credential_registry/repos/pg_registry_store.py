"""PostgreSQL implementation of RegistryStore."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from credential_registry.db.tables import (
    AchievementRow,
    AuthorizedIssuerRow,
    CategoryTagsRow,
    CredentialRow,
    CredentialTokenRow,
    DelegationRow,
    DisputeRow,
    EndorsementRow,
    NotificationSettingsRow,
    PrerequisitesRow,
    RatingRow,
    RegistryCounterRow,
    UpgradePathRow,
    VerificationRow,
)
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
from credential_registry.repos.registry_store import (
    TokenAlreadyMintedError,
    active_store,
)

# Advisory lock key shared by every registry transaction (ASCII "CREDREG").
_REGISTRY_LOCK_KEY = 0x43524544524547


class PgRegistryStore:
    """Satisfies the RegistryStore Protocol using PostgreSQL via SQLAlchemy.

    One instance wraps one request-scoped AsyncSession.  Each transaction
    takes a transaction-level advisory lock, so registry operations are
    serialized across every API process sharing the database.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if active_store.get() is self:
            yield
            return

        token = active_store.set(self)
        try:
            async with self._session.begin():
                await self._session.execute(
                    select(func.pg_advisory_xact_lock(_REGISTRY_LOCK_KEY))
                )
                yield
        finally:
            active_store.reset(token)

    async def next_id(self, counter: str) -> int:
        row = await self._session.get(RegistryCounterRow, counter, with_for_update=True)
        if row is None:
            self._session.add(RegistryCounterRow(name=counter, value=1))
            await self._session.flush()
            return 0
        current = row.value
        row.value = current + 1
        return current

    # --- Authorization ---

    async def is_issuer_authorized(self, identity: str) -> bool:
        row = await self._session.get(AuthorizedIssuerRow, identity)
        return row is not None and row.authorized

    async def set_issuer_authorized(self, identity: str, authorized: bool) -> None:
        await self._session.merge(
            AuthorizedIssuerRow(identity=identity, authorized=authorized)
        )

    async def get_delegation(self, delegate: str) -> Delegation | None:
        row = await self._session.get(DelegationRow, delegate)
        if row is None:
            return None
        return Delegation(
            delegate=row.delegate,
            delegator=row.delegator,
            expiry=row.expiry,
            active=row.active,
        )

    async def put_delegation(self, delegation: Delegation) -> None:
        await self._session.merge(
            DelegationRow(
                delegate=delegation.delegate,
                delegator=delegation.delegator,
                expiry=delegation.expiry,
                active=delegation.active,
            )
        )

    # --- Credentials and ownership tokens ---

    async def get_credential(self, credential_id: int) -> Credential | None:
        row = await self._session.get(CredentialRow, credential_id)
        if row is None:
            return None
        return _row_to_credential(row)

    async def put_credential(self, credential: Credential) -> None:
        await self._session.merge(
            CredentialRow(
                id=credential.id,
                recipient=credential.recipient,
                issuer=credential.issuer,
                skill=credential.skill,
                issue_time=credential.issue_time,
                expiry_time=credential.expiry_time,
                details=credential.metadata,
                revoked=credential.revoked,
                level=credential.level,
            )
        )

    async def get_token_owner(self, credential_id: int) -> str | None:
        row = await self._session.get(CredentialTokenRow, credential_id)
        return row.owner if row is not None else None

    async def mint_token(self, credential_id: int, owner: str) -> None:
        if await self._session.get(CredentialTokenRow, credential_id) is not None:
            raise TokenAlreadyMintedError(f"token {credential_id} already minted")
        self._session.add(CredentialTokenRow(credential_id=credential_id, owner=owner))
        await self._session.flush()

    async def move_token(self, credential_id: int, owner: str) -> None:
        row = await self._session.get(CredentialTokenRow, credential_id)
        if row is None:
            raise KeyError(f"token {credential_id} not minted")
        row.owner = owner

    # --- Disputes ---

    async def get_dispute(self, credential_id: int) -> Dispute | None:
        row = await self._session.get(DisputeRow, credential_id)
        if row is None:
            return None
        return Dispute(
            credential_id=row.credential_id,
            disputant=row.disputant,
            reason=row.reason,
            timestamp=row.timestamp,
            status=row.status,
            issuer_response=row.issuer_response,
            disputed=row.disputed,
        )

    async def put_dispute(self, dispute: Dispute) -> None:
        await self._session.merge(
            DisputeRow(
                credential_id=dispute.credential_id,
                disputed=dispute.disputed,
                reason=dispute.reason,
                disputant=dispute.disputant,
                issuer_response=dispute.issuer_response,
                status=dispute.status,
                timestamp=dispute.timestamp,
            )
        )

    # --- Auxiliary registries ---

    async def get_rating(self, credential_id: int, rater: str) -> Rating | None:
        row = await self._session.get(RatingRow, (credential_id, rater))
        if row is None:
            return None
        return Rating(
            credential_id=row.credential_id,
            rater=row.rater,
            rating=row.rating,
            comment=row.comment,
            timestamp=row.timestamp,
        )

    async def put_rating(self, rating: Rating) -> None:
        await self._session.merge(
            RatingRow(
                credential_id=rating.credential_id,
                rater=rating.rater,
                rating=rating.rating,
                comment=rating.comment,
                timestamp=rating.timestamp,
            )
        )

    async def get_achievement(self, achievement_id: int) -> Achievement | None:
        row = await self._session.get(AchievementRow, achievement_id)
        if row is None:
            return None
        return Achievement(
            id=row.id,
            credential_id=row.credential_id,
            title=row.title,
            description=row.description,
            timestamp=row.timestamp,
        )

    async def put_achievement(self, achievement: Achievement) -> None:
        await self._session.merge(
            AchievementRow(
                id=achievement.id,
                credential_id=achievement.credential_id,
                title=achievement.title,
                description=achievement.description,
                timestamp=achievement.timestamp,
            )
        )

    async def get_category_tags(self, credential_id: int) -> CategoryTags | None:
        row = await self._session.get(CategoryTagsRow, credential_id)
        if row is None:
            return None
        return CategoryTags(
            credential_id=row.credential_id,
            category=row.category,
            tags=tuple(row.tags) if row.tags else (),
        )

    async def put_category_tags(self, category_tags: CategoryTags) -> None:
        await self._session.merge(
            CategoryTagsRow(
                credential_id=category_tags.credential_id,
                category=category_tags.category,
                tags=list(category_tags.tags),
            )
        )

    async def get_prerequisites(self, credential_id: int) -> Prerequisites | None:
        row = await self._session.get(PrerequisitesRow, credential_id)
        if row is None:
            return None
        return Prerequisites(
            credential_id=row.credential_id,
            prerequisite_ids=tuple(row.prerequisite_ids) if row.prerequisite_ids else (),
        )

    async def put_prerequisites(self, prerequisites: Prerequisites) -> None:
        await self._session.merge(
            PrerequisitesRow(
                credential_id=prerequisites.credential_id,
                prerequisite_ids=list(prerequisites.prerequisite_ids),
            )
        )

    async def get_upgrade_path(self, source_id: int) -> UpgradePath | None:
        row = await self._session.get(UpgradePathRow, source_id)
        if row is None:
            return None
        return UpgradePath(
            source_id=row.source_id,
            target_id=row.target_id,
            requirements=row.requirements,
        )

    async def put_upgrade_path(self, path: UpgradePath) -> None:
        await self._session.merge(
            UpgradePathRow(
                source_id=path.source_id,
                target_id=path.target_id,
                requirements=path.requirements,
            )
        )

    async def get_endorsement(
        self, credential_id: int, endorser: str
    ) -> Endorsement | None:
        row = await self._session.get(EndorsementRow, (credential_id, endorser))
        if row is None:
            return None
        return Endorsement(
            credential_id=row.credential_id,
            endorser=row.endorser,
            timestamp=row.timestamp,
        )

    async def put_endorsement(self, endorsement: Endorsement) -> None:
        await self._session.merge(
            EndorsementRow(
                credential_id=endorsement.credential_id,
                endorser=endorsement.endorser,
                timestamp=endorsement.timestamp,
            )
        )

    async def get_verification(
        self, credential_id: int, verifier: str
    ) -> VerificationRecord | None:
        row = await self._session.get(VerificationRow, (credential_id, verifier))
        if row is None:
            return None
        return VerificationRecord(
            credential_id=row.credential_id,
            verifier=row.verifier,
            count=row.count,
            last_verified=row.last_verified,
        )

    async def put_verification(self, record: VerificationRecord) -> None:
        await self._session.merge(
            VerificationRow(
                credential_id=record.credential_id,
                verifier=record.verifier,
                count=record.count,
                last_verified=record.last_verified,
            )
        )

    async def get_notification_settings(
        self, credential_id: int, identity: str
    ) -> NotificationSettings | None:
        row = await self._session.get(
            NotificationSettingsRow, (credential_id, identity)
        )
        if row is None:
            return None
        return NotificationSettings(
            credential_id=row.credential_id,
            identity=row.identity,
            expiry_alerts=row.expiry_alerts,
            dispute_alerts=row.dispute_alerts,
            alert_window=row.alert_window,
        )

    async def put_notification_settings(self, settings: NotificationSettings) -> None:
        await self._session.merge(
            NotificationSettingsRow(
                credential_id=settings.credential_id,
                identity=settings.identity,
                expiry_alerts=settings.expiry_alerts,
                dispute_alerts=settings.dispute_alerts,
                alert_window=settings.alert_window,
            )
        )


def _row_to_credential(row: CredentialRow) -> Credential:
    return Credential(
        id=row.id,
        recipient=row.recipient,
        issuer=row.issuer,
        skill=row.skill,
        issue_time=row.issue_time,
        expiry_time=row.expiry_time,
        metadata=row.details,
        revoked=row.revoked,
        level=row.level,
    )
