"""
Shared pytest fixtures for relayrun tests.

This module provides:
- Registry and settings isolation between tests
- A controllable wall clock for time-budget tests
- In-memory store / registrar / runner wiring
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from relayrun.core.continuations import KeyValueContinuationStore
from relayrun.core.scheduling import InMemoryTimerRegistrar
from relayrun.core.settings import clear_settings_cache
from relayrun.execution.driver import ContinuationRunner
from relayrun.execution.entrypoints import clear_entry_points
from tests._support import FakeClock


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_entry_points() -> Iterator[None]:
    """Clear the entry point registry before and after each test."""
    clear_entry_points()
    yield
    clear_entry_points()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch) -> Iterator[None]:
    """Point settings at a temp directory and drop cached instances."""
    for var in ("RELAY_TIMEOUT_SECONDS", "RELAY_SPLIT", "RELAY_NAMESPACE", "RELAY_JOBSTORE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RELAY_DATABASE_PATH", str(tmp_path / "relay.db"))
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Wiring Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> KeyValueContinuationStore:
    return KeyValueContinuationStore()


@pytest.fixture
def registrar() -> InMemoryTimerRegistrar:
    return InMemoryTimerRegistrar(quota=20)


@pytest.fixture
def runner(store, registrar, clock) -> ContinuationRunner:
    return ContinuationRunner(store, registrar, clock=clock)
