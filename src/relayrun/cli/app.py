"""
Root Typer application for the relayrun CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="relayrun",
    help="relayrun: checkpoint/resume continuations for time-limited batch jobs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("relayrun")
        except PackageNotFoundError:
            from relayrun import __version__ as v
        typer.echo(f"relayrun {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """relayrun CLI: inspect timers and continuations, host entry points."""
    from relayrun.core.logging import configure_logging
    from relayrun.core.settings import get_settings

    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("plan")
def plan(
    length: int = typer.Option(..., "--length", "-n", min=0, help="Exclusive end of the range"),
    index: int = typer.Option(0, "--index", "-i", min=0, help="First index of the range"),
    split: int = typer.Option(4, "--split", "-k", min=0, max=4, help="Fan-out exponent"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Preview the fan-out partition of [INDEX, LENGTH) without registering timers."""
    from relayrun.cli.utils import fail, output_items
    from relayrun.core.errors import ConfigError
    from relayrun.execution.splitter import plan_segments

    try:
        segments = plan_segments(index, length, split)
    except ConfigError as exc:
        fail(exc.message)
    rows = [{"index": s.index, "length": s.length, "size": s.size} for s in segments]
    output_items(rows, as_json=json_out, title=f"{len(rows)} segment(s)")


# ── Sub-command registration ─────────────────────────────────────────────

from relayrun.cli.continuations import app as continuations_app  # noqa: E402
from relayrun.cli.timers import app as timers_app  # noqa: E402
from relayrun.cli.worker import worker  # noqa: E402

app.add_typer(timers_app, name="timers", help="Pending continuation timers.")
app.add_typer(continuations_app, name="continuations", help="Stored continuation cursors.")
app.command("worker")(worker)
