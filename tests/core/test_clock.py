from __future__ import annotations

import pytest

from credential_registry.api.dependencies import get_clock
from credential_registry.core import clock as clock_module
from credential_registry.core.clock import Clock, ManualClock, SystemClock
from credential_registry.core.config import load_settings


def test_manual_clock_starts_at_zero_and_advances() -> None:
    clock = ManualClock()
    assert clock.now() == 0
    assert clock.advance() == 1
    assert clock.advance(9) == 10
    clock.set(10)
    clock.set(25)
    assert clock.now() == 25


def test_manual_clock_never_moves_backwards() -> None:
    clock = ManualClock(start=5)
    with pytest.raises(ValueError):
        clock.set(4)
    with pytest.raises(ValueError):
        clock.advance(-1)
    assert clock.now() == 5


def test_system_clock_is_non_decreasing() -> None:
    clock = SystemClock()
    readings = [clock.now() for _ in range(100)]
    assert readings == sorted(readings)
    assert readings[0] > 1_600_000_000


def test_system_clock_clamps_when_wall_clock_steps_back() -> None:
    clock = SystemClock()
    first = clock.now()
    clock._last = first + 1000
    assert clock.now() == first + 1000


def test_service_always_runs_on_system_time(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # The clock kind is not configurable.
    monkeypatch.setenv("CLOCK", "manual")
    settings = load_settings()
    assert not hasattr(settings, "clock")

    host_clock = get_clock()
    assert host_clock is clock_module.clock
    assert isinstance(host_clock, SystemClock)
    assert isinstance(host_clock, Clock)
    assert host_clock.now() > 1_600_000_000
