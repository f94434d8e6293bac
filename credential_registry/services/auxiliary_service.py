"""Auxiliary registries: ratings, achievements, catalog metadata,
upgrade paths, endorsements and notification preferences.

Each registry is independent and keyed by credential id, optionally paired
with a second identity.  Nothing here changes a credential's own fields.

Who may write:
  rate                     anyone (no existence check; range check first)
  achievements / category / prerequisites / upgrade path
                           the credential's issuer of record
  endorse                  any authorized issuer
  notification settings    the credential's recipient or issuer, for themselves
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from credential_registry.core.clock import Clock
from credential_registry.models.auxiliary import (
    CATEGORY_MAX_LEN,
    COMMENT_MAX_LEN,
    DESCRIPTION_MAX_LEN,
    MAX_PREREQUISITES,
    MAX_RATING,
    MAX_TAGS,
    REQUIREMENTS_MAX_LEN,
    TAG_MAX_LEN,
    TITLE_MAX_LEN,
    Achievement,
    CategoryTags,
    Endorsement,
    NotificationSettings,
    Prerequisites,
    Rating,
    UpgradePath,
)
from credential_registry.models.credential import Credential
from credential_registry.repos.registry_store import (
    ACHIEVEMENT_COUNTER,
    RegistryStore,
)
from credential_registry.services.credential_service import load_credential
from credential_registry.services.errors import (
    InvalidCredential,
    InvalidInput,
    InvalidRating,
    NotAuthorized,
    reject,
    require_text,
    require_uint,
)

logger = logging.getLogger(__name__)


class AuxiliaryService:
    def __init__(self, store: RegistryStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    # --- Ratings ---

    async def rate(
        self, caller: str, credential_id: int, rating: int, comment: str
    ) -> Rating:
        """Record (or replace) the caller's rating of a credential id.

        The id is not required to exist, and issuers or recipients may rate
        their own credentials.
        """
        if rating > MAX_RATING:
            raise reject(
                logger,
                InvalidRating(f"rating must be between 0 and {MAX_RATING}"),
                caller=caller,
                credential_id=credential_id,
            )
        require_uint("rating", rating)
        require_uint("credential_id", credential_id)
        require_text("comment", comment, COMMENT_MAX_LEN)
        record = Rating(
            credential_id=credential_id,
            rater=caller,
            rating=rating,
            comment=comment,
            timestamp=self._clock.now(),
        )
        async with self._store.transaction():
            await self._store.put_rating(record)
        logger.info(
            "Rating recorded credential=%d rater=%s rating=%d",
            credential_id,
            caller,
            rating,
        )
        return record

    async def get_rating(self, credential_id: int, rater: str) -> Rating | None:
        async with self._store.transaction():
            return await self._store.get_rating(credential_id, rater)

    # --- Achievements ---

    async def add_achievement(
        self, caller: str, credential_id: int, title: str, description: str
    ) -> int:
        require_text("title", title, TITLE_MAX_LEN)
        require_text("description", description, DESCRIPTION_MAX_LEN)
        async with self._store.transaction():
            await self._load_as_issuer(caller, credential_id)
            achievement_id = await self._store.next_id(ACHIEVEMENT_COUNTER)
            await self._store.put_achievement(
                Achievement(
                    id=achievement_id,
                    credential_id=credential_id,
                    title=title,
                    description=description,
                    timestamp=self._clock.now(),
                )
            )
        logger.info(
            "Achievement added id=%d credential=%d",
            achievement_id,
            credential_id,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return achievement_id

    async def get_achievement(self, achievement_id: int) -> Achievement | None:
        async with self._store.transaction():
            return await self._store.get_achievement(achievement_id)

    # --- Catalog metadata ---

    async def set_category_and_tags(
        self,
        caller: str,
        credential_id: int,
        category: str,
        tags: Sequence[str],
    ) -> CategoryTags:
        require_text("category", category, CATEGORY_MAX_LEN)
        if len(tags) > MAX_TAGS:
            raise reject(
                logger,
                InvalidInput(f"at most {MAX_TAGS} tags are allowed"),
                caller=caller,
                credential_id=credential_id,
            )
        for tag in tags:
            require_text("tag", tag, TAG_MAX_LEN)
        record = CategoryTags(
            credential_id=credential_id, category=category, tags=tuple(tags)
        )
        async with self._store.transaction():
            await self._load_as_issuer(caller, credential_id)
            await self._store.put_category_tags(record)
        return record

    async def get_category_and_tags(self, credential_id: int) -> CategoryTags | None:
        async with self._store.transaction():
            return await self._store.get_category_tags(credential_id)

    async def set_prerequisites(
        self, caller: str, credential_id: int, prerequisite_ids: Sequence[int]
    ) -> Prerequisites:
        """Attach prerequisite credential ids.

        The ids are references only; they are not required to exist.
        """
        if len(prerequisite_ids) > MAX_PREREQUISITES:
            raise reject(
                logger,
                InvalidInput(f"at most {MAX_PREREQUISITES} prerequisites are allowed"),
                caller=caller,
                credential_id=credential_id,
            )
        for prerequisite_id in prerequisite_ids:
            require_uint("prerequisite id", prerequisite_id)
        record = Prerequisites(
            credential_id=credential_id, prerequisite_ids=tuple(prerequisite_ids)
        )
        async with self._store.transaction():
            await self._load_as_issuer(caller, credential_id)
            await self._store.put_prerequisites(record)
        return record

    async def get_prerequisites(self, credential_id: int) -> Prerequisites | None:
        async with self._store.transaction():
            return await self._store.get_prerequisites(credential_id)

    # --- Upgrade paths ---

    async def set_upgrade_path(
        self, caller: str, source_id: int, target_id: int, requirements: str
    ) -> UpgradePath:
        require_uint("target_id", target_id)
        require_text("requirements", requirements, REQUIREMENTS_MAX_LEN)
        path = UpgradePath(
            source_id=source_id, target_id=target_id, requirements=requirements
        )
        async with self._store.transaction():
            await self._load_as_issuer(caller, source_id)
            await load_credential(self._store, target_id, caller=caller, log=logger)
            await self._store.put_upgrade_path(path)
        logger.info(
            "Upgrade path set source=%d target=%d",
            source_id,
            target_id,
            extra={"caller": caller, "credential_id": source_id},
        )
        return path

    async def get_upgrade_path(self, source_id: int) -> UpgradePath | None:
        async with self._store.transaction():
            return await self._store.get_upgrade_path(source_id)

    async def upgrade(self, caller: str, source_id: int, target_id: int) -> bool:
        """Check that `target_id` is the registered upgrade of `source_id`.

        Validation only: neither credential is modified and nothing is
        recorded.
        """
        async with self._store.transaction():
            await self._load_as_issuer(caller, source_id)
            path = await self._store.get_upgrade_path(source_id)
            if path is None or path.target_id != target_id:
                raise reject(
                    logger,
                    InvalidCredential(
                        f"credential {target_id} is not the upgrade of {source_id}"
                    ),
                    caller=caller,
                    credential_id=source_id,
                )
        logger.info(
            "Upgrade validated source=%d target=%d",
            source_id,
            target_id,
            extra={"caller": caller, "credential_id": source_id},
        )
        return True

    # --- Endorsements ---

    async def endorse(self, caller: str, credential_id: int) -> Endorsement:
        async with self._store.transaction():
            if not await self._store.is_issuer_authorized(caller):
                raise reject(
                    logger,
                    NotAuthorized("only authorized issuers can endorse"),
                    caller=caller,
                    credential_id=credential_id,
                )
            await load_credential(self._store, credential_id, caller=caller, log=logger)
            endorsement = Endorsement(
                credential_id=credential_id,
                endorser=caller,
                timestamp=self._clock.now(),
            )
            await self._store.put_endorsement(endorsement)
        logger.info(
            "Credential endorsed id=%d by=%s",
            credential_id,
            caller,
            extra={"caller": caller, "credential_id": credential_id},
        )
        return endorsement

    async def get_endorsement(
        self, credential_id: int, endorser: str
    ) -> Endorsement | None:
        async with self._store.transaction():
            return await self._store.get_endorsement(credential_id, endorser)

    # --- Notification preferences ---

    async def set_notification_settings(
        self,
        caller: str,
        credential_id: int,
        *,
        expiry_alerts: bool,
        dispute_alerts: bool,
        alert_window: int,
    ) -> NotificationSettings:
        require_uint("alert_window", alert_window)
        settings = NotificationSettings(
            credential_id=credential_id,
            identity=caller,
            expiry_alerts=expiry_alerts,
            dispute_alerts=dispute_alerts,
            alert_window=alert_window,
        )
        async with self._store.transaction():
            credential = await load_credential(
                self._store, credential_id, caller=caller, log=logger
            )
            if caller not in (credential.recipient, credential.issuer):
                raise reject(
                    logger,
                    NotAuthorized("only the recipient or issuer can set alerts"),
                    caller=caller,
                    credential_id=credential_id,
                )
            await self._store.put_notification_settings(settings)
        return settings

    async def get_notification_settings(
        self, credential_id: int, identity: str
    ) -> NotificationSettings | None:
        async with self._store.transaction():
            return await self._store.get_notification_settings(credential_id, identity)

    async def _load_as_issuer(self, caller: str, credential_id: int) -> Credential:
        credential = await load_credential(
            self._store, credential_id, caller=caller, log=logger
        )
        if caller != credential.issuer:
            raise reject(
                logger,
                NotAuthorized("only the issuer of record can change this"),
                caller=caller,
                credential_id=credential_id,
            )
        return credential
