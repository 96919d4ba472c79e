"""
CLI: ``relayrun timers``: inspect and cancel pending continuation timers.
"""

from __future__ import annotations

import typer

from relayrun.cli.utils import cli_session, console, fail, output_items

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_timers(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List pending continuation timers."""
    with cli_session(database) as (_, registrar):
        pending = sorted(registrar.list_pending(), key=lambda r: (str(r.fire_at), r.id))
    output_items(pending, as_json=json_out, title="Pending timers")


@app.command("cancel")
def cancel_timer(
    timer_id: str = typer.Argument(..., help="Timer (continuation) ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Cancel one timer and delete its stored cursor."""
    with cli_session(database) as (store, registrar):
        cancelled = registrar.cancel(timer_id)
        deleted = store.delete(timer_id)
    if not cancelled and not deleted:
        fail(f"No timer or continuation with id {timer_id}")
    console.print(f"[green]Cancelled[/green] {timer_id} (timer={cancelled}, cursor={deleted})")


@app.command("purge")
def purge_timers(
    entry_point: str | None = typer.Option(None, "--entry-point", "-e", help="Only this entry point"),
    database: str | None = typer.Option(None, "--database", "-d"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Cancel every pending timer and delete its cursor."""
    from relayrun.execution.driver import purge_continuations

    scope = f"entry point '{entry_point}'" if entry_point else "all entry points"
    if not yes:
        typer.confirm(f"Purge pending continuations for {scope}?", abort=True)

    with cli_session(database) as (store, registrar):
        count = purge_continuations(store, registrar, entry_point)
    console.print(f"[green]Purged[/green] {count} timer(s) for {scope}")
