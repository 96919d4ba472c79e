"""
CLI: ``relayrun continuations``: read stored cursors.
"""

from __future__ import annotations

import typer

from relayrun.cli.utils import cli_session, console, fail, output_item
from relayrun.core.errors import RelayError

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_continuations(
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """List ids of stored continuations."""
    with cli_session(database) as (store, _):
        ids = store.list_ids()
    if not ids:
        console.print("[dim]No items.[/dim]")
        return
    for continuation_id in ids:
        console.print(continuation_id)


@app.command("show")
def show_continuation(
    continuation_id: str = typer.Argument(..., help="Continuation ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the cursor stored for a continuation."""
    with cli_session(database) as (store, _):
        try:
            cursor = store.get(continuation_id)
        except RelayError as exc:
            fail(exc.message)
    if cursor is None:
        fail(f"No continuation with id {continuation_id}")
    output_item(cursor, as_json=json_out, title=f"Continuation: {continuation_id}")
