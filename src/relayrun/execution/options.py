"""Per-invocation run options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from relayrun.core.errors import ConfigError

if TYPE_CHECKING:
    from relayrun.core.settings import RelaySettings

MAX_SPLIT = 4


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Options for one invocation of ``run`` / ``run_in_parallel``.

    Not persisted: every leg of a resumed run supplies its own options,
    so entry points should build them the same way each time (see
    :meth:`from_settings`).

    Attributes:
        timeout_seconds: Time budget for this invocation.
        resume_delay_seconds: Delay before a continuation fires.
        split: Parallel fan-out exponent; ``run_in_parallel`` creates
            up to ``2 ** split`` segments.  Must not exceed 4 there.
        start: Clock reading the budget counts from (default: call time).
        debug: Log per-item timing and position.
    """

    timeout_seconds: float = 300.0
    resume_delay_seconds: float = 60.0
    split: int = MAX_SPLIT
    start: float | None = None
    debug: bool = False

    def __post_init__(self) -> None:
        if not _is_number(self.timeout_seconds) or self.timeout_seconds <= 0:
            raise ConfigError(f"timeout_seconds must be a positive number, got {self.timeout_seconds!r}")
        if not _is_number(self.resume_delay_seconds) or self.resume_delay_seconds < 0:
            raise ConfigError(
                f"resume_delay_seconds must be a non-negative number, got {self.resume_delay_seconds!r}"
            )
        if not isinstance(self.split, int) or isinstance(self.split, bool) or self.split < 0:
            raise ConfigError(f"split must be a non-negative integer, got {self.split!r}")
        if self.start is not None and not _is_number(self.start):
            raise ConfigError(f"start must be a clock reading, got {self.start!r}")

    @classmethod
    def from_settings(cls, settings: RelaySettings, **overrides: object) -> RunOptions:
        """Build options from settings, applying keyword overrides."""
        values: dict[str, object] = {
            "timeout_seconds": settings.timeout_seconds,
            "resume_delay_seconds": settings.resume_delay_seconds,
            "split": settings.split,
            "debug": settings.debug,
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


__all__ = ["MAX_SPLIT", "RunOptions"]
