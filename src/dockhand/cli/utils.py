"""
CLI utility helpers — orchestrator wiring and output formatting.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Coroutine
from typing import Any, NoReturn, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from dockhand.core.errors import DockhandError
from dockhand.core.logging import configure_logging
from dockhand.core.models import Workload
from dockhand.core.settings import get_settings
from dockhand.service import OperationOutcome, Orchestrator

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


# ── Wiring ───────────────────────────────────────────────────────────────


def make_orchestrator() -> Orchestrator:
    """Configure logging from settings and build the docker-backed orchestrator."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    return Orchestrator.from_settings(settings)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run one orchestrator coroutine, turning known errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except DockhandError as exc:
        fail(exc.message)


def guarded(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call a synchronous orchestrator method, turning known errors into exit code 1."""
    try:
        return fn(*args, **kwargs)
    except DockhandError as exc:
        fail(exc.message)


def fail(message: str, code: int = 1) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=code)


# ── Output helpers ───────────────────────────────────────────────────────


def output_outcome(outcome: OperationOutcome, *, as_json: bool = False) -> None:
    """Render an ``OperationOutcome``; non-ok outcomes exit with code 1."""
    if as_json:
        console.print_json(json.dumps(outcome.to_dict(), default=str))
    elif outcome.ok:
        console.print(outcome.message, markup=False, highlight=False)
    else:
        err_console.print(
            f"[bold red]{outcome.status.value}[/bold red]: ",
            end="",
        )
        err_console.print(outcome.message, markup=False, highlight=False)
    if not outcome.ok:
        raise typer.Exit(code=1)


def output_workloads(workloads: list[Workload], *, as_json: bool = False, title: str = "") -> None:
    if as_json:
        console.print_json(json.dumps([w.to_dict() for w in workloads]))
        return
    if not workloads:
        console.print("[dim]No containers found.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in ("name", "id", "state", "status", "image"):
        table.add_column(col, overflow="fold")
    for workload in workloads:
        state = workload.state.value
        if workload.is_running:
            state = f"[green]{state}[/green]"
        table.add_row(workload.display_name, workload.short_id, state, workload.status, workload.image)
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
