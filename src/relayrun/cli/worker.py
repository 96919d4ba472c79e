"""
CLI: ``relayrun worker``: host entry points under APScheduler.
"""

from __future__ import annotations

import importlib
import time

import typer

from relayrun.cli.utils import console, fail
from relayrun.core.errors import RelayError
from relayrun.core.scheduling import APSchedulerTimerRegistrar
from relayrun.execution.driver import ContinuationRunner
from relayrun.execution.entrypoints import get_entry_point, list_entry_points


def _wait_forever() -> None:
    while True:
        time.sleep(1)


def worker(
    module: str = typer.Option(..., "--module", "-m", help="Module that registers entry points"),
    runner_attr: str = typer.Option("runner", "--runner", help="Module attribute holding the ContinuationRunner"),
    start: list[str] = typer.Option([], "--start", "-s", help="Entry point to invoke once at startup"),
) -> None:
    """Run the timer host for the entry points of MODULE until interrupted.

    The module must expose a ``ContinuationRunner`` whose registrar is an
    ``APSchedulerTimerRegistrar``; the worker starts that scheduler so
    pending continuations fire.

    Example::

        relayrun worker --module jobs.sync
        relayrun worker --module jobs.sync --start sync_rows
    """
    try:
        mod = importlib.import_module(module)
    except ImportError as exc:
        fail(f"Cannot import {module}: {exc}")

    runner = getattr(mod, runner_attr, None)
    if not isinstance(runner, ContinuationRunner):
        fail(f"{module}.{runner_attr} is not a ContinuationRunner")
    registrar = runner.registrar
    if not isinstance(registrar, APSchedulerTimerRegistrar):
        fail(f"{module}.{runner_attr} does not use an APScheduler registrar")

    console.print(
        f"[bold green]Starting relayrun worker[/bold green] "
        f"(entry points: {', '.join(list_entry_points()) or 'none'})"
    )
    registrar.start()
    try:
        for name in start:
            get_entry_point(name)(None)
        _wait_forever()
    except KeyboardInterrupt:
        console.print("\n[yellow]Worker stopped by user[/yellow]")
    except (KeyError, RelayError) as exc:
        console.print(f"[red]Worker error: {exc}[/red]")
        raise typer.Exit(code=1)
    finally:
        registrar.shutdown()
