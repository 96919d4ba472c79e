"""Fixtures for CLI tests: in-memory sessions instead of on-disk stores."""

from __future__ import annotations

from contextlib import contextmanager
from unittest.mock import patch

import pytest

from relayrun.core.continuations import KeyValueContinuationStore
from relayrun.core.scheduling import InMemoryTimerRegistrar


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the root callback from reconfiguring structlog for the test run."""
    with patch("relayrun.core.logging.configure_logging"):
        yield


@pytest.fixture
def session():
    """Patch ``cli_session`` in every command module; yields (store, registrar)."""
    store = KeyValueContinuationStore()
    registrar = InMemoryTimerRegistrar()

    @contextmanager
    def fake_session(database=None):
        yield store, registrar

    with (
        patch("relayrun.cli.timers.cli_session", fake_session),
        patch("relayrun.cli.continuations.cli_session", fake_session),
    ):
        yield store, registrar
