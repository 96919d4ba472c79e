"""
CLI utility helpers: output formatting and store/registrar sessions.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from relayrun.core.continuations import KeyValueContinuationStore, create_store
from relayrun.core.scheduling import APSchedulerTimerRegistrar, create_registrar
from relayrun.core.settings import RelaySettings, get_settings

console = Console()
err_console = Console(stderr=True)


# ── Session helpers ──────────────────────────────────────────────────────


def load_settings(database: str | None = None) -> RelaySettings:
    """Settings with an optional ``--database`` override applied."""
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"database_path": Path(database)})
    return settings


@contextmanager
def cli_session(
    database: str | None = None,
) -> Iterator[tuple[KeyValueContinuationStore, APSchedulerTimerRegistrar]]:
    """Open the continuation store and the job store without firing timers.

    The scheduler is started paused so pending jobs are loaded from the
    job store but nothing runs while the command inspects or edits them.
    """
    settings = load_settings(database)
    store = create_store(settings)
    registrar = create_registrar("apscheduler", settings)
    registrar.start(paused=True)
    try:
        yield store, registrar
    finally:
        registrar.shutdown(wait=False)


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / value object / dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_items(items: list[Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a list as a Rich table, or as JSON."""
    if as_json:
        console.print_json(json.dumps([_to_dict(i) for i in items], default=str))
        return
    if not items:
        console.print("[dim]No items.[/dim]")
        return
    _print_table(items, title=title)


def output_item(obj: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render a single object as key-value pairs, or as JSON."""
    if as_json:
        console.print_json(json.dumps(_to_dict(obj), default=str))
        return
    _print_dict(_to_dict(obj), title=title)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(str(v) for v in d.values()))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
