"""Trigger event descriptor passed to an entry point when a timer fires."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from relayrun.core.errors import ConfigError

_UID_KEYS = ("trigger_uid", "triggerUid")


@dataclass(frozen=True, slots=True)
class TriggerEvent:
    """What the host hands an entry point on invocation.

    ``trigger_uid`` is the continuation id when the invocation is a
    resumption, ``None`` for a fresh start.
    """

    trigger_uid: str | None = None

    @property
    def is_resumption(self) -> bool:
        return bool(self.trigger_uid)

    @classmethod
    def coerce(cls, value: Any) -> TriggerEvent:
        """Normalize ``None``, a ``TriggerEvent``, a host event mapping, or
        a host event object exposing ``triggerUid``/``trigger_uid``."""
        if value is None:
            return cls()
        if isinstance(value, TriggerEvent):
            return value
        if isinstance(value, Mapping):
            for key in _UID_KEYS:
                uid = value.get(key)
                if uid is not None:
                    return cls._from_uid(key, uid)
            return cls()
        for key in _UID_KEYS:
            if hasattr(value, key):
                uid = getattr(value, key)
                return cls._from_uid(key, uid) if uid is not None else cls()
        raise ConfigError(f"Unsupported trigger event: {type(value).__name__}")

    @classmethod
    def _from_uid(cls, key: str, uid: Any) -> TriggerEvent:
        if not isinstance(uid, str):
            raise ConfigError(f"event {key} must be a string, got {type(uid).__name__}")
        return cls(trigger_uid=uid or None)


__all__ = ["TriggerEvent"]
