"""
ULID and UTC helpers (stdlib-only).

Continuation ids double as timer ids and store keys, so they must be
unique across every timer a deployment ever creates.  ULIDs add a
useful property on top: they sort by creation time, which makes
``relayrun timers list`` read in the order continuations were scheduled.
"""

from __future__ import annotations

import random
import time
from datetime import UTC, datetime, timedelta

# Crockford base32 alphabet
_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def utc_after(seconds: float, now: datetime | None = None) -> datetime:
    """Return the UTC instant *seconds* after *now* (default: current time)."""
    return (now or utc_now()) + timedelta(seconds=seconds)


def generate_ulid() -> str:
    """
    Generate a ULID-like identifier.

    26 characters: 10 for the millisecond timestamp, 16 random.
    """
    timestamp_ms = int(time.time() * 1000)
    chars = []
    for _ in range(10):
        chars.append(_ENCODING[timestamp_ms % 32])
        timestamp_ms //= 32
    return "".join(reversed(chars)) + "".join(random.choices(_ENCODING, k=16))


__all__ = ["utc_now", "utc_after", "generate_ulid"]
