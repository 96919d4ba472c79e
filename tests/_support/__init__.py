"""Test helpers shared across the relayrun suite."""

from __future__ import annotations

from relayrun.core.scheduling import InMemoryTimerRegistrar
from relayrun.core.timestamps import utc_after


class FakeClock:
    """Callable clock in seconds that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def drain(registrar: InMemoryTimerRegistrar, max_rounds: int = 100) -> int:
    """Fire due timers until none are pending.  Returns the number fired."""
    fired = 0
    for _ in range(max_rounds):
        if not registrar.list_pending():
            return fired
        fired += len(registrar.fire_due(now=utc_after(3600)))
    raise AssertionError("resume chain did not finish")
