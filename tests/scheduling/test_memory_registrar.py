"""
Tests for InMemoryTimerRegistrar.

Tests cover:
- register/list_pending/cancel bookkeeping
- fire_due() ordering, one-shot semantics and error propagation
- create_registrar() factory
"""

from datetime import UTC, datetime, timedelta

import pytest

from relayrun.core.scheduling import (
    APSchedulerTimerRegistrar,
    InMemoryTimerRegistrar,
    TimerRegistrar,
    create_registrar,
)
from relayrun.core.settings import RelaySettings
from relayrun.execution.entrypoints import register_entry_point
from relayrun.execution.events import TriggerEvent

T0 = datetime(2026, 1, 1, tzinfo=UTC)


class ManualClock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def manual_clock():
    return ManualClock()


@pytest.fixture
def mem(manual_clock):
    return InMemoryTimerRegistrar(quota=5, clock=manual_clock)


class TestRegistration:
    def test_satisfies_protocol(self, mem):
        assert isinstance(mem, TimerRegistrar)
        assert mem.quota == 5
        assert mem.name == "memory"

    def test_register_returns_pending_registration(self, mem):
        reg = mem.register("sync_rows", delay_seconds=60)
        assert reg.entry_point == "sync_rows"
        assert reg.fire_at == T0 + timedelta(seconds=60)
        assert mem.list_pending() == [reg]

    def test_ids_are_unique(self, mem):
        ids = {mem.register("job", 1).id for _ in range(5)}
        assert len(ids) == 5

    def test_cancel(self, mem):
        reg = mem.register("job", 1)
        assert mem.cancel(reg.id) is True
        assert mem.list_pending() == []
        assert mem.cancel(reg.id) is False

    def test_to_dict(self, mem):
        reg = mem.register("job", 0)
        assert reg.to_dict() == {"id": reg.id, "entry_point": "job", "fire_at": T0.isoformat()}


class TestFireDue:
    def test_fires_only_due_timers(self, mem, manual_clock):
        calls = []

        @register_entry_point
        def job(event=None):
            calls.append(event)

        soon = mem.register("job", 10)
        later = mem.register("job", 100)
        manual_clock.now = T0 + timedelta(seconds=50)

        fired = mem.fire_due()
        assert fired == [soon]
        assert calls == [TriggerEvent(trigger_uid=soon.id)]
        assert mem.list_pending() == [later]

    def test_fires_oldest_first(self, mem):
        order = []

        @register_entry_point
        def job(event=None):
            order.append(event.trigger_uid)

        late = mem.register("job", 30)
        early = mem.register("job", 10)
        mem.fire_due(now=T0 + timedelta(seconds=60))
        assert order == [early.id, late.id]

    def test_timers_registered_while_firing_wait(self, mem):
        @register_entry_point
        def chain(event=None):
            mem.register("chain", 0)

        mem.register("chain", 0)
        assert len(mem.fire_due(now=T0)) == 1
        assert len(mem.list_pending()) == 1

    def test_cancelled_during_firing_is_skipped(self, mem):
        calls = []
        mem.register("first", 1)
        pending_second = mem.register("second", 2)

        @register_entry_point
        def first(event=None):
            calls.append("first")
            mem.cancel(pending_second.id)

        @register_entry_point
        def second(event=None):
            calls.append("second")

        mem.fire_due(now=T0 + timedelta(seconds=5))
        assert calls == ["first"]

    def test_entry_point_error_propagates(self, mem):
        @register_entry_point
        def broken(event=None):
            raise RuntimeError("boom")

        mem.register("broken", 1)
        other = mem.register("broken", 2)
        with pytest.raises(RuntimeError, match="boom"):
            mem.fire_due(now=T0 + timedelta(seconds=5))
        assert mem.list_pending() == [other]

    def test_unknown_entry_point(self, mem):
        mem.register("missing", 0)
        with pytest.raises(KeyError, match="missing"):
            mem.fire_due(now=T0)


class TestCreateRegistrar:
    def test_memory(self):
        registrar = create_registrar("memory", RelaySettings(timer_quota=7))
        assert isinstance(registrar, InMemoryTimerRegistrar)
        assert registrar.quota == 7

    def test_apscheduler(self, tmp_path):
        settings = RelaySettings(database_path=tmp_path / "sub" / "jobs.db")
        registrar = create_registrar("apscheduler", settings)
        assert isinstance(registrar, APSchedulerTimerRegistrar)
        assert registrar.quota == 20
        assert (tmp_path / "sub").is_dir()

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown timer backend"):
            create_registrar("celery")
