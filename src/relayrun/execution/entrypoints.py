"""Entry point registry: timer-addressable name → callable lookup.

Manifesto:
    A timer can only carry a *name*.  When it fires, something has to
    turn that name back into the function that started the run.  The
    registry decouples registration (at import time) from resolution
    (when a timer fires), so the same entry point can be re-entered on
    a different thread, or in a different process that imported the
    same module.

ARCHITECTURE
────────────
::

    @register_entry_point            def sync_rows(event=None): ...
    @register_entry_point("rows")    def other(event=None): ...

    get_entry_point("sync_rows")  ─ timer dispatch
    resolve_entry_point_name(fn)  ─ validation at run() time

Tags:
    relayrun, execution, registry, entry-point, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, overload

from relayrun.core.errors import ConfigError
from relayrun.core.logging import get_logger

logger = get_logger(__name__)

# Name Python gives to every lambda; a timer cannot address it.
ANONYMOUS_NAME = "<lambda>"

EntryPoint = Callable[..., Any]

_registry: dict[str, EntryPoint] = {}


def resolve_entry_point_name(entry_point: str | EntryPoint) -> str:
    """Return the name a timer would use to re-enter *entry_point*.

    Raises:
        ConfigError: If the name is empty, anonymous, or not derivable.
    """
    if isinstance(entry_point, str):
        name = entry_point
    elif callable(entry_point):
        name = getattr(entry_point, "__name__", "") or ""
    else:
        raise ConfigError(f"entry point must be a name or a callable, got {type(entry_point).__name__}")

    if not name.strip():
        raise ConfigError("entry point name is not defined")
    if name == ANONYMOUS_NAME:
        raise ConfigError("entry point cannot be an anonymous function (lambda)")
    return name


@overload
def register_entry_point(func: EntryPoint) -> EntryPoint: ...


@overload
def register_entry_point(func: str | None = None) -> Callable[[EntryPoint], EntryPoint]: ...


def register_entry_point(func: EntryPoint | str | None = None) -> Any:
    """Register a function so timers can invoke it by name.

    Usable bare or with an explicit name::

        @register_entry_point
        def sync_rows(event=None): ...

        @register_entry_point("nightly_export")
        def export(event=None): ...
    """

    def decorator(fn: EntryPoint, name: str | None = None) -> EntryPoint:
        key = resolve_entry_point_name(name or fn)
        if key in _registry and _registry[key] is not fn:
            raise ValueError(f"Entry point '{key}' is already registered")
        _registry[key] = fn
        logger.debug("entry_point_registered", name=key)
        return fn

    if callable(func):
        return decorator(func)

    def named(fn: EntryPoint) -> EntryPoint:
        return decorator(fn, func)

    return named


def get_entry_point(name: str) -> EntryPoint:
    """Get a registered entry point by name."""
    if name not in _registry:
        available = ", ".join(sorted(_registry)) or "none"
        raise KeyError(f"Entry point '{name}' not found. Available: {available}")
    return _registry[name]


def list_entry_points() -> list[str]:
    """List all registered entry point names."""
    return sorted(_registry)


def clear_entry_points() -> None:
    """Clear registry (for testing)."""
    _registry.clear()


__all__ = [
    "ANONYMOUS_NAME",
    "EntryPoint",
    "resolve_entry_point_name",
    "register_entry_point",
    "get_entry_point",
    "list_entry_points",
    "clear_entry_points",
]
