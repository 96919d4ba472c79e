"""
CLI layer for relayrun.

Provides a Typer application for operating a deployment: inspecting and
cancelling pending continuation timers, reading stored cursors, previewing
fan-out partitions, and hosting entry points under APScheduler.

Entry point::

    relayrun --help
"""

from relayrun.cli.app import app

__all__ = ["app"]
