"""Credential issuance, lifecycle and verification over HTTP."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from credential_registry.core.clock import ManualClock
from tests.conftest import OWNER, auth


@pytest.fixture
def issuer(client: TestClient) -> str:
    resp = client.put("/v1/issuers/acme", headers=auth(OWNER))
    assert resp.status_code == 200
    return "acme"


def _issue(
    client: TestClient,
    caller: str = "acme",
    recipient: str = "alice",
    expiry_time: int = 100,
    path: str = "/v1/credentials",
) -> int:
    resp = client.post(
        path,
        json={
            "recipient": recipient,
            "skill": "Full Stack Development",
            "expiry_time": expiry_time,
            "metadata": "ipfs://cid",
        },
        headers=auth(caller),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def test_example_scenario(client: TestClient, issuer: str) -> None:
    """Revocation survives renewal and dominates verification."""
    credential_id = _issue(client)
    assert credential_id == 0

    resp = client.get("/v1/credentials/0/verify")
    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is True
    assert body["credential"]["revoked"] is False

    resp = client.post("/v1/credentials/0/revoke", headers=auth("acme"))
    assert resp.status_code == 200
    assert resp.json()["revoked"] is True

    resp = client.get("/v1/credentials/0/verify")
    assert resp.status_code == 410
    assert resp.json() == {
        "error": "CredentialRevoked",
        "code": 102,
        "detail": "credential 0 has been revoked",
    }

    resp = client.post(
        "/v1/credentials/0/renew", json={"new_expiry": 200}, headers=auth("acme")
    )
    assert resp.status_code == 200
    assert resp.json()["expiry_time"] == 200

    resp = client.get("/v1/credentials/0/verify")
    assert resp.json()["code"] == 102


def test_issue_requires_token(client: TestClient) -> None:
    resp = client.post(
        "/v1/credentials",
        json={"recipient": "alice", "skill": "Go", "expiry_time": 1},
    )
    assert resp.status_code == 401


def test_issue_by_non_issuer(client: TestClient) -> None:
    resp = client.post(
        "/v1/credentials",
        json={"recipient": "alice", "skill": "Go", "expiry_time": 1},
        headers=auth("mallory"),
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "NotAuthorized"
    assert resp.json()["code"] == 100


def test_issue_with_oversized_skill(client: TestClient, issuer: str) -> None:
    resp = client.post(
        "/v1/credentials",
        json={"recipient": "alice", "skill": "x" * 65, "expiry_time": 1},
        headers=auth("acme"),
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == 109


def test_get_credential_is_public(
    client: TestClient, manual_clock: ManualClock, issuer: str
) -> None:
    manual_clock.set(5)
    credential_id = _issue(client)
    resp = client.get(f"/v1/credentials/{credential_id}")
    assert resp.status_code == 200
    assert resp.json() == {
        "id": credential_id,
        "recipient": "alice",
        "issuer": "acme",
        "skill": "Full Stack Development",
        "issue_time": 5,
        "expiry_time": 100,
        "metadata": "ipfs://cid",
        "revoked": False,
        "level": 1,
    }


def test_get_missing_credential(client: TestClient) -> None:
    assert client.get("/v1/credentials/3").status_code == 404
    assert client.get("/v1/credentials/3/owner").status_code == 404


def test_verify_expired(client: TestClient, manual_clock: ManualClock, issuer: str) -> None:
    credential_id = _issue(client, expiry_time=10)
    manual_clock.set(10)
    resp = client.get(f"/v1/credentials/{credential_id}/verify")
    assert resp.status_code == 410
    assert resp.json()["error"] == "CredentialExpired"
    assert resp.json()["code"] == 103


def test_verify_unknown(client: TestClient) -> None:
    resp = client.get("/v1/credentials/77/verify")
    assert resp.status_code == 404
    assert resp.json()["code"] == 101


def test_logged_verification_counts(
    client: TestClient, manual_clock: ManualClock, issuer: str
) -> None:
    credential_id = _issue(client)
    resp = client.get(f"/v1/credentials/{credential_id}/verifications/hr-bot")
    assert resp.json()["count"] == 0
    assert resp.json()["last_verified"] is None

    manual_clock.set(3)
    for _ in range(2):
        resp = client.post(
            f"/v1/credentials/{credential_id}/verify", headers=auth("hr-bot")
        )
        assert resp.status_code == 200

    resp = client.get(f"/v1/credentials/{credential_id}/verifications/hr-bot")
    assert resp.json() == {
        "credential_id": credential_id,
        "verifier": "hr-bot",
        "count": 2,
        "last_verified": 3,
    }


def test_delegated_issuance_over_http(client: TestClient, issuer: str) -> None:
    resp = client.post(
        "/v1/delegations",
        json={"delegate": "bob", "expiry_offset": 50},
        headers=auth("acme"),
    )
    assert resp.status_code == 201

    credential_id = _issue(client, caller="bob", path="/v1/credentials/delegated")
    resp = client.get(f"/v1/credentials/{credential_id}")
    assert resp.json()["issuer"] == "acme"


def test_delegated_issuance_without_delegation(client: TestClient) -> None:
    resp = client.post(
        "/v1/credentials/delegated",
        json={"recipient": "alice", "skill": "Go", "expiry_time": 1},
        headers=auth("bob"),
    )
    assert resp.status_code == 403


def test_transfer_moves_token(client: TestClient, issuer: str) -> None:
    credential_id = _issue(client)

    resp = client.post(
        f"/v1/credentials/{credential_id}/transfer",
        json={"new_recipient": "dave"},
        headers=auth("acme"),
    )
    assert resp.status_code == 403

    resp = client.post(
        f"/v1/credentials/{credential_id}/transfer",
        json={"new_recipient": "dave"},
        headers=auth("alice"),
    )
    assert resp.status_code == 200
    assert resp.json()["recipient"] == "dave"
    assert client.get(f"/v1/credentials/{credential_id}/owner").json() == {
        "credential_id": credential_id,
        "owner": "dave",
    }


def test_level_update(client: TestClient, issuer: str) -> None:
    credential_id = _issue(client)
    resp = client.put(
        f"/v1/credentials/{credential_id}/level", json={"level": 3}, headers=auth("acme")
    )
    assert resp.status_code == 200
    assert resp.json()["level"] == 3

    resp = client.put(
        f"/v1/credentials/{credential_id}/level", json={"level": 4}, headers=auth("acme")
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "InvalidLevel"


def test_renew_as_delegate_over_http(client: TestClient, issuer: str) -> None:
    credential_id = _issue(client)
    client.post(
        "/v1/delegations",
        json={"delegate": "bob", "expiry_offset": 50},
        headers=auth("acme"),
    )
    resp = client.post(
        f"/v1/credentials/{credential_id}/renew-delegated",
        json={"new_expiry": 999},
        headers=auth("bob"),
    )
    assert resp.status_code == 200
    assert resp.json()["expiry_time"] == 999
