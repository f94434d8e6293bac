from __future__ import annotations

from fastapi.testclient import TestClient

from credential_registry.core.clock import ManualClock
from tests.conftest import OWNER, auth


def test_owner_manages_allow_list(client: TestClient) -> None:
    assert client.get("/v1/issuers/acme").json() == {
        "identity": "acme",
        "authorized": False,
    }

    resp = client.put("/v1/issuers/acme", headers=auth(OWNER))
    assert resp.status_code == 200
    assert client.get("/v1/issuers/acme").json()["authorized"] is True

    resp = client.delete("/v1/issuers/acme", headers=auth(OWNER))
    assert resp.status_code == 200
    assert resp.json() == {"identity": "acme", "authorized": False}
    assert client.get("/v1/issuers/acme").json()["authorized"] is False


def test_non_owner_cannot_add_issuer(client: TestClient) -> None:
    resp = client.put("/v1/issuers/mallory", headers=auth("mallory"))
    assert resp.status_code == 403
    assert resp.json()["code"] == 100


def test_invalid_token_rejected(client: TestClient) -> None:
    resp = client.put(
        "/v1/issuers/acme", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401


def test_delegation_lifecycle(client: TestClient, manual_clock: ManualClock) -> None:
    client.put("/v1/issuers/acme", headers=auth(OWNER))

    resp = client.post(
        "/v1/delegations",
        json={"delegate": "bob", "expiry_offset": 10},
        headers=auth("acme"),
    )
    assert resp.status_code == 201
    assert resp.json() == {
        "delegate": "bob",
        "delegator": "acme",
        "expiry": 10,
        "active": True,
        "valid": True,
    }

    manual_clock.set(10)
    assert client.get("/v1/delegations/bob").json()["valid"] is False


def test_removed_delegator_invalidates_delegate(client: TestClient) -> None:
    client.put("/v1/issuers/acme", headers=auth(OWNER))
    client.post(
        "/v1/delegations",
        json={"delegate": "bob", "expiry_offset": 10},
        headers=auth("acme"),
    )
    client.delete("/v1/issuers/acme", headers=auth(OWNER))

    body = client.get("/v1/delegations/bob").json()
    assert body["active"] is True
    assert body["valid"] is False


def test_revoke_delegation(client: TestClient) -> None:
    client.put("/v1/issuers/acme", headers=auth(OWNER))
    client.post(
        "/v1/delegations",
        json={"delegate": "bob", "expiry_offset": 10},
        headers=auth("acme"),
    )

    resp = client.delete("/v1/delegations/bob", headers=auth("bob"))
    assert resp.status_code == 403

    resp = client.delete("/v1/delegations/bob", headers=auth("acme"))
    assert resp.status_code == 200
    assert resp.json()["active"] is False
    assert resp.json()["valid"] is False


def test_get_missing_delegation(client: TestClient) -> None:
    assert client.get("/v1/delegations/nobody").status_code == 404
