"""Credential lifecycle: issuance, revocation, renewal, transfer, level."""

from __future__ import annotations

import asyncio

import pytest

from credential_registry.core.clock import ManualClock
from credential_registry.repos.registry_store import InMemoryRegistryStore
from credential_registry.services.errors import (
    CredentialRevoked,
    InvalidCredential,
    InvalidInput,
    InvalidLevel,
    NotAuthorized,
)
from credential_registry.services.registry import Registry, build_registry
from tests.conftest import OWNER


@pytest.fixture
def issuer(registry: Registry) -> str:
    asyncio.run(registry.authorization.add_issuer(OWNER, "acme"))
    return "acme"


def _issue(
    registry: Registry,
    issuer: str = "acme",
    recipient: str = "alice",
    expiry: int = 1000,
) -> int:
    return asyncio.run(
        registry.credentials.issue(issuer, recipient, "Rust", expiry, "ipfs://x")
    )


# ---- issuance ----


def test_issue_stores_record_and_mints_token(
    registry: Registry, clock: ManualClock, issuer: str
) -> None:
    clock.set(7)
    credential_id = _issue(registry)

    credential = asyncio.run(registry.credentials.get_credential(credential_id))
    assert credential is not None
    assert credential.recipient == "alice"
    assert credential.issuer == "acme"
    assert credential.skill == "Rust"
    assert credential.issue_time == 7
    assert credential.expiry_time == 1000
    assert credential.metadata == "ipfs://x"
    assert credential.revoked is False
    assert credential.level == 1
    assert asyncio.run(registry.credentials.get_token_owner(credential_id)) == "alice"


def test_ids_are_contiguous_from_zero(registry: Registry, issuer: str) -> None:
    ids = [_issue(registry) for _ in range(4)]
    assert ids == [0, 1, 2, 3]


def test_unauthorized_issue_consumes_no_id(registry: Registry, issuer: str) -> None:
    with pytest.raises(NotAuthorized):
        _issue(registry, issuer="mallory")
    assert _issue(registry) == 0
    assert asyncio.run(registry.credentials.get_credential(1)) is None


def test_issue_allows_past_expiry(registry: Registry, clock: ManualClock, issuer: str) -> None:
    clock.set(50)
    credential_id = _issue(registry, expiry=10)
    credential = asyncio.run(registry.credentials.get_credential(credential_id))
    assert credential is not None
    assert credential.expiry_time == 10


def test_issue_rejects_oversized_skill(registry: Registry, issuer: str) -> None:
    with pytest.raises(InvalidInput):
        asyncio.run(registry.credentials.issue("acme", "alice", "x" * 65, 10, ""))
    assert _issue(registry) == 0


def test_issue_checks_input_before_authorization(registry: Registry) -> None:
    with pytest.raises(InvalidInput):
        asyncio.run(registry.credentials.issue("mallory", "alice", "Rust", -1, ""))


def test_removed_issuer_cannot_issue(registry: Registry, issuer: str) -> None:
    asyncio.run(registry.authorization.remove_issuer(OWNER, "acme"))
    with pytest.raises(NotAuthorized):
        _issue(registry)


def test_delegated_issue_records_delegator(registry: Registry, issuer: str) -> None:
    asyncio.run(registry.authorization.delegate_authority("acme", "bob", 100))
    credential_id = asyncio.run(
        registry.credentials.issue_as_delegate("bob", "alice", "Go", 500, "")
    )
    credential = asyncio.run(registry.credentials.get_credential(credential_id))
    assert credential is not None
    assert credential.issuer == "acme"

    # The delegate holds no issuer-of-record rights over it.
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.revoke("bob", credential_id))
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.renew("bob", credential_id, 900))
    unchanged = asyncio.run(registry.credentials.get_credential(credential_id))
    assert unchanged is not None and unchanged.expiry_time == 500

    asyncio.run(registry.credentials.renew("acme", credential_id, 900))
    asyncio.run(registry.credentials.revoke("acme", credential_id))


def test_delegated_issue_fails_after_expiry(
    registry: Registry, clock: ManualClock, issuer: str
) -> None:
    asyncio.run(registry.authorization.delegate_authority("acme", "bob", 10))
    clock.set(10)
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.issue_as_delegate("bob", "alice", "Go", 500, ""))


def test_delegated_and_direct_issuance_share_one_counter(
    registry: Registry, issuer: str
) -> None:
    asyncio.run(registry.authorization.delegate_authority("acme", "bob", 100))
    first = _issue(registry)
    second = asyncio.run(
        registry.credentials.issue_as_delegate("bob", "carol", "Go", 500, "")
    )
    assert (first, second) == (0, 1)


# ---- revocation ----


def test_revoke_is_idempotent_and_permanent(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    asyncio.run(registry.credentials.revoke("acme", credential_id))
    asyncio.run(registry.credentials.revoke("acme", credential_id))

    asyncio.run(registry.credentials.renew("acme", credential_id, 99999))
    asyncio.run(registry.credentials.update_level("acme", credential_id, 3))
    asyncio.run(registry.credentials.transfer("alice", credential_id, "dave"))

    credential = asyncio.run(registry.credentials.get_credential(credential_id))
    assert credential is not None
    assert credential.revoked is True
    with pytest.raises(CredentialRevoked):
        asyncio.run(registry.verification.verify(credential_id))


def test_only_issuer_of_record_can_revoke(registry: Registry, issuer: str) -> None:
    asyncio.run(registry.authorization.add_issuer(OWNER, "globex"))
    credential_id = _issue(registry)
    for caller in ("globex", "alice", OWNER):
        with pytest.raises(NotAuthorized):
            asyncio.run(registry.credentials.revoke(caller, credential_id))


def test_issuer_keeps_rights_after_removal(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    asyncio.run(registry.authorization.remove_issuer(OWNER, "acme"))
    revoked = asyncio.run(registry.credentials.revoke("acme", credential_id))
    assert revoked.revoked is True


def test_revoke_missing_credential(registry: Registry, issuer: str) -> None:
    with pytest.raises(InvalidCredential) as exc:
        asyncio.run(registry.credentials.revoke("acme", 42))
    assert exc.value.code == 101


# ---- renewal ----


def test_renew_replaces_expiry_without_floor(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry, expiry=1000)
    renewed = asyncio.run(registry.credentials.renew("acme", credential_id, 5))
    assert renewed.expiry_time == 5


def test_renew_rejects_non_issuer(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.renew("alice", credential_id, 5))


def test_renew_as_delegate_ignores_issuer_of_record_by_default(
    registry: Registry, issuer: str
) -> None:
    asyncio.run(registry.authorization.add_issuer(OWNER, "globex"))
    credential_id = _issue(registry, issuer="globex")
    asyncio.run(registry.authorization.delegate_authority("acme", "bob", 100))

    renewed = asyncio.run(
        registry.credentials.renew_as_delegate("bob", credential_id, 2000)
    )
    assert renewed.expiry_time == 2000
    assert renewed.issuer == "globex"


def test_strict_renewal_requires_matching_delegator(
    store: InMemoryRegistryStore, clock: ManualClock
) -> None:
    registry = build_registry(store, clock, owner=OWNER, strict_delegate_renewal=True)
    for name in ("acme", "globex"):
        asyncio.run(registry.authorization.add_issuer(OWNER, name))
    foreign_id = _issue(registry, issuer="globex")
    own_id = _issue(registry, issuer="acme")
    asyncio.run(registry.authorization.delegate_authority("acme", "bob", 100))

    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.renew_as_delegate("bob", foreign_id, 2000))
    renewed = asyncio.run(registry.credentials.renew_as_delegate("bob", own_id, 2000))
    assert renewed.expiry_time == 2000


def test_renew_as_delegate_checks_delegation_before_existence(
    registry: Registry, issuer: str
) -> None:
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.renew_as_delegate("bob", 42, 10))

    asyncio.run(registry.authorization.delegate_authority("acme", "bob", 100))
    with pytest.raises(InvalidCredential):
        asyncio.run(registry.credentials.renew_as_delegate("bob", 42, 10))


# ---- transfer ----


def test_transfer_moves_recipient_and_token_only(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    before = asyncio.run(registry.credentials.get_credential(credential_id))

    after = asyncio.run(registry.credentials.transfer("alice", credential_id, "dave"))

    assert before is not None
    assert after.recipient == "dave"
    assert asyncio.run(registry.credentials.get_token_owner(credential_id)) == "dave"
    for field in ("issuer", "skill", "issue_time", "expiry_time", "metadata", "revoked", "level"):
        assert getattr(after, field) == getattr(before, field)


def test_only_recipient_can_transfer(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.transfer("acme", credential_id, "dave"))

    asyncio.run(registry.credentials.transfer("alice", credential_id, "dave"))
    # Rights follow the credential.
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.transfer("alice", credential_id, "alice"))
    asyncio.run(registry.credentials.transfer("dave", credential_id, "erin"))


def test_transfer_to_self_is_allowed(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    after = asyncio.run(registry.credentials.transfer("alice", credential_id, "alice"))
    assert after.recipient == "alice"


def test_transfer_missing_credential(registry: Registry) -> None:
    with pytest.raises(InvalidCredential):
        asyncio.run(registry.credentials.transfer("alice", 3, "dave"))


# ---- level ----


@pytest.mark.parametrize("level", [0, 1, 2, 3])
def test_update_level_accepts_zero_to_three(
    registry: Registry, issuer: str, level: int
) -> None:
    credential_id = _issue(registry)
    updated = asyncio.run(registry.credentials.update_level("acme", credential_id, level))
    assert updated.level == level


def test_update_level_rejects_above_three(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    with pytest.raises(InvalidLevel) as exc:
        asyncio.run(registry.credentials.update_level("acme", credential_id, 4))
    assert exc.value.code == 105


def test_update_level_range_checked_before_existence(registry: Registry) -> None:
    with pytest.raises(InvalidLevel):
        asyncio.run(registry.credentials.update_level("acme", 99, 4))


def test_update_level_rejects_non_issuer(registry: Registry, issuer: str) -> None:
    credential_id = _issue(registry)
    with pytest.raises(NotAuthorized):
        asyncio.run(registry.credentials.update_level("alice", credential_id, 2))
