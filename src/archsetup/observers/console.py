# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/observers/console.py
from __future__ import annotations

import typer

from .events import (
    BaseEvent,
    BlockRescued,
    RunAborted,
    RunSummary,
    SectionStarted,
    TaskFailed,
    TaskFinished,
    TaskSkipped,
)


class ConsoleObserver:
    """Ansible-like one line per task on the terminal."""

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        if isinstance(event, SectionStarted):
            typer.echo(f"\nSECTION [{event.name}] " + "*" * 40)
        elif isinstance(event, TaskFinished):
            status = "changed" if event.changed else "ok"
            typer.echo(f"{status}: [{d['host']}] {event.name}")
        elif isinstance(event, TaskSkipped):
            typer.echo(f"skipping: [{d['host']}] {event.name}")
        elif isinstance(event, TaskFailed):
            suffix = " (ignored)" if event.ignored else ""
            typer.echo(f"failed: [{d['host']}] {event.name}: {event.error}{suffix}", err=True)
        elif isinstance(event, BlockRescued):
            typer.echo(f"rescued: [{d['host']}] {event.name} after '{event.failed_task}' failed")
        elif isinstance(event, RunAborted):
            typer.echo(f"\nABORTED at '{event.task}': {event.error}", err=True)
        elif isinstance(event, RunSummary):
            typer.echo(
                f"\n{d['host']}: ok={event.ok} changed={event.changed} skipped={event.skipped} "
                f"failed={event.failed} rescued={event.rescued}"
            )
