from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from credential_registry.api.dependencies import get_clock, registry_store
from credential_registry.api.ratelimit import _rate_limiter
from credential_registry.core.clock import ManualClock
from credential_registry.core.config import SETTINGS
from credential_registry.main import app
from credential_registry.repos.registry_store import InMemoryRegistryStore
from credential_registry.services import token_service
from credential_registry.services.registry import Registry, build_registry

OWNER = SETTINGS.registry_owner


@pytest.fixture(autouse=True)
def reset_registry_store() -> None:
    """Start every test with empty registries and counters at 0."""
    registry_store.reset()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit buckets between tests so limits don't bleed."""
    if hasattr(_rate_limiter, "_buckets"):
        _rate_limiter._buckets.clear()  # type: ignore[union-attr]


@pytest.fixture
def manual_clock() -> Iterator[ManualClock]:
    """Host time counter for the API, starting at 0."""
    host_clock = ManualClock()
    app.dependency_overrides[get_clock] = lambda: host_clock
    yield host_clock
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
def client(manual_clock: ManualClock) -> TestClient:
    return TestClient(app)


def mint_token(identity: str = "test-user") -> str:
    """Create a valid ES256 JWT whose subject is `identity`."""
    return token_service.create_access_token(sub=identity)


def auth(identity: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(identity)}"}


# ---------------------------------------------------------------------------
# Service-level fixtures (no HTTP)
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryRegistryStore:
    return InMemoryRegistryStore()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def registry(store: InMemoryRegistryStore, clock: ManualClock) -> Registry:
    return build_registry(store, clock, owner=OWNER)
