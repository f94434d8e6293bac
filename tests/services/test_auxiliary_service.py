"""Ratings, achievements, catalog metadata, upgrade paths, endorsements
and notification preferences."""

from __future__ import annotations

import asyncio

import pytest

from credential_registry.core.clock import ManualClock
from credential_registry.services.errors import (
    InvalidCredential,
    InvalidInput,
    InvalidRating,
    NotAuthorized,
)
from credential_registry.services.registry import Registry
from tests.conftest import OWNER


@pytest.fixture
def credential_id(registry: Registry) -> int:
    asyncio.run(registry.authorization.add_issuer(OWNER, "acme"))
    return asyncio.run(registry.credentials.issue("acme", "alice", "Rust", 100, ""))


# ---- ratings ----


def test_rate_and_replace(registry: Registry, clock: ManualClock, credential_id: int) -> None:
    aux = registry.auxiliary
    asyncio.run(aux.rate("bob", credential_id, 3, "ok"))
    clock.set(4)
    asyncio.run(aux.rate("bob", credential_id, 5, "great"))

    rating = asyncio.run(aux.get_rating(credential_id, "bob"))
    assert rating is not None
    assert (rating.rating, rating.comment, rating.timestamp) == (5, "great", 4)


def test_rate_above_five_fails_even_for_missing_credential(registry: Registry) -> None:
    with pytest.raises(InvalidRating) as exc:
        asyncio.run(registry.auxiliary.rate("bob", 12345, 6, ""))
    assert exc.value.code == 104


def test_rate_does_not_require_existing_credential(registry: Registry) -> None:
    rating = asyncio.run(registry.auxiliary.rate("bob", 12345, 0, ""))
    assert rating.rating == 0


def test_participants_may_rate_their_own_credential(
    registry: Registry, credential_id: int
) -> None:
    asyncio.run(registry.auxiliary.rate("alice", credential_id, 5, ""))
    asyncio.run(registry.auxiliary.rate("acme", credential_id, 4, ""))


def test_negative_rating_is_invalid_input(registry: Registry) -> None:
    with pytest.raises(InvalidInput):
        asyncio.run(registry.auxiliary.rate("bob", 0, -1, ""))


# ---- achievements ----


def test_achievements_have_their_own_counter(
    registry: Registry, credential_id: int
) -> None:
    aux = registry.auxiliary
    first = asyncio.run(aux.add_achievement("acme", credential_id, "Capstone", "built it"))
    second = asyncio.run(aux.add_achievement("acme", credential_id, "Talk", ""))
    assert (first, second) == (0, 1)

    # Credential ids are unaffected.
    next_credential = asyncio.run(
        registry.credentials.issue("acme", "bob", "Go", 100, "")
    )
    assert next_credential == credential_id + 1

    achievement = asyncio.run(aux.get_achievement(first))
    assert achievement is not None
    assert achievement.credential_id == credential_id
    assert achievement.title == "Capstone"


def test_only_issuer_adds_achievements(registry: Registry, credential_id: int) -> None:
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.auxiliary.add_achievement("alice", credential_id, "Me", ""))
    # Rejected call consumed no achievement id.
    assert (
        asyncio.run(registry.auxiliary.add_achievement("acme", credential_id, "Ok", ""))
        == 0
    )


# ---- category / prerequisites ----


def test_set_category_and_tags(registry: Registry, credential_id: int) -> None:
    aux = registry.auxiliary
    asyncio.run(aux.set_category_and_tags("acme", credential_id, "lang", ["sys", "web"]))
    record = asyncio.run(aux.get_category_and_tags(credential_id))
    assert record is not None
    assert record.category == "lang"
    assert record.tags == ("sys", "web")


def test_too_many_tags_rejected(registry: Registry, credential_id: int) -> None:
    with pytest.raises(InvalidInput):
        asyncio.run(
            registry.auxiliary.set_category_and_tags(
                "acme", credential_id, "lang", ["a", "b", "c", "d", "e", "f"]
            )
        )


def test_category_requires_issuer(registry: Registry, credential_id: int) -> None:
    with pytest.raises(NotAuthorized):
        asyncio.run(
            registry.auxiliary.set_category_and_tags("alice", credential_id, "x", [])
        )


def test_prerequisites_are_not_checked_for_existence(
    registry: Registry, credential_id: int
) -> None:
    record = asyncio.run(
        registry.auxiliary.set_prerequisites("acme", credential_id, [77, 78])
    )
    assert record.prerequisite_ids == (77, 78)
    assert asyncio.run(registry.auxiliary.get_prerequisites(credential_id)) == record


def test_prerequisites_on_missing_credential(registry: Registry) -> None:
    with pytest.raises(InvalidCredential):
        asyncio.run(registry.auxiliary.set_prerequisites("acme", 5, []))


# ---- upgrade paths ----


def test_upgrade_path_and_upgrade(registry: Registry, credential_id: int) -> None:
    aux = registry.auxiliary
    target = asyncio.run(registry.credentials.issue("acme", "alice", "Rust II", 100, ""))
    asyncio.run(aux.set_upgrade_path("acme", credential_id, target, "pass exam"))

    path = asyncio.run(aux.get_upgrade_path(credential_id))
    assert path is not None
    assert (path.target_id, path.requirements) == (target, "pass exam")

    before = asyncio.run(registry.credentials.get_credential(credential_id))
    assert asyncio.run(aux.upgrade("acme", credential_id, target)) is True
    assert asyncio.run(registry.credentials.get_credential(credential_id)) == before


def test_upgrade_to_wrong_target(registry: Registry, credential_id: int) -> None:
    aux = registry.auxiliary
    target = asyncio.run(registry.credentials.issue("acme", "alice", "Rust II", 100, ""))
    asyncio.run(aux.set_upgrade_path("acme", credential_id, target, ""))
    with pytest.raises(InvalidCredential):
        asyncio.run(aux.upgrade("acme", credential_id, target + 1))


def test_upgrade_without_path(registry: Registry, credential_id: int) -> None:
    with pytest.raises(InvalidCredential):
        asyncio.run(registry.auxiliary.upgrade("acme", credential_id, 0))


def test_upgrade_path_target_must_exist(registry: Registry, credential_id: int) -> None:
    with pytest.raises(InvalidCredential):
        asyncio.run(registry.auxiliary.set_upgrade_path("acme", credential_id, 99, ""))
    assert asyncio.run(registry.auxiliary.get_upgrade_path(credential_id)) is None


# ---- endorsements ----


def test_any_authorized_issuer_can_endorse(
    registry: Registry, clock: ManualClock, credential_id: int
) -> None:
    asyncio.run(registry.authorization.add_issuer(OWNER, "globex"))
    clock.set(9)
    endorsement = asyncio.run(registry.auxiliary.endorse("globex", credential_id))
    assert endorsement.timestamp == 9
    assert asyncio.run(registry.auxiliary.get_endorsement(credential_id, "globex")) == (
        endorsement
    )


def test_non_issuer_cannot_endorse(registry: Registry, credential_id: int) -> None:
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.auxiliary.endorse("alice", credential_id))


def test_endorse_missing_credential(registry: Registry, credential_id: int) -> None:
    with pytest.raises(InvalidCredential):
        asyncio.run(registry.auxiliary.endorse("acme", 99))


# ---- notification settings ----


def test_recipient_and_issuer_keep_separate_settings(
    registry: Registry, credential_id: int
) -> None:
    aux = registry.auxiliary
    asyncio.run(
        aux.set_notification_settings(
            "alice", credential_id, expiry_alerts=True, dispute_alerts=False, alert_window=30
        )
    )
    asyncio.run(
        aux.set_notification_settings(
            "acme", credential_id, expiry_alerts=False, dispute_alerts=True, alert_window=0
        )
    )
    mine = asyncio.run(aux.get_notification_settings(credential_id, "alice"))
    theirs = asyncio.run(aux.get_notification_settings(credential_id, "acme"))
    assert mine is not None and theirs is not None
    assert (mine.dispute_alerts, mine.alert_window) == (False, 30)
    assert theirs.expiry_alerts is False


def test_outsider_cannot_set_notifications(
    registry: Registry, credential_id: int
) -> None:
    with pytest.raises(NotAuthorized):
        asyncio.run(
            registry.auxiliary.set_notification_settings(
                "bob", credential_id, expiry_alerts=True, dispute_alerts=True, alert_window=0
            )
        )
