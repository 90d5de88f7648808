#!/usr/bin/env -S uv run
"""
Inspection tool for beanstalkd servers, built on beanline.

Prints server/tube/job statistics, the list of tubes, or a peeked job.

Usage:
    uv run tools/inspect_server.py stats
    uv run tools/inspect_server.py stats --tube emails
    uv run tools/inspect_server.py stats --job 42
    uv run tools/inspect_server.py tubes
    uv run tools/inspect_server.py peek ready --tube emails
    BEANLINE_ADDRESS=queue.internal:11300 uv run tools/inspect_server.py tubes
"""
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "pydantic>=2.0",
#     "typer>=0.9.0",
#     "rich>=13.0",
# ]
# ///

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

# Import beanline from the local checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from beanline import BeanlineError, Connection, Job, Stats

app = typer.Typer(
    help="Inspect a beanstalkd server",
    add_completion=False,
)

console = Console()

AddressOption = typer.Option(
    "127.0.0.1:11300",
    "--address",
    "-a",
    envvar="BEANLINE_ADDRESS",
    help="Server address as host:port",
)
TimeoutOption = typer.Option(
    1000.0,
    "--timeout-ms",
    help="Connect/read timeout in milliseconds",
)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_stats(title: str, stats: Stats) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Key", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in stats.items():
        table.add_row(key, str(value))
    return table


def render_tubes(tubes: tuple[str, ...]) -> Table:
    table = Table(title="Tubes", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    for index, name in enumerate(tubes, start=1):
        table.add_row(str(index), name)
    return table


def render_job(job: Job) -> Table:
    table = Table(title=f"Job {job.id}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("id", str(job.id))
    table.add_row("bytes", str(len(job.body)))
    table.add_row("body", job.body.decode("utf-8", errors="replace"))
    return table


def _fail(exc: BeanlineError) -> None:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def stats(
    address: str = AddressOption,
    timeout_ms: float = TimeoutOption,
    tube: str | None = typer.Option(None, "--tube", "-t", help="Show stats for a tube"),
    job: int | None = typer.Option(None, "--job", "-j", help="Show stats for a job"),
) -> None:
    """Show server, tube, or job statistics."""
    if tube is not None and job is not None:
        console.print("[bold red]Error:[/bold red] use either --tube or --job")
        raise typer.Exit(code=2)
    try:
        with Connection(address, timeout_ms=timeout_ms) as conn:
            if tube is not None:
                console.print(render_stats(f"Tube {tube}", conn.stats_tube(tube)))
            elif job is not None:
                console.print(render_stats(f"Job {job}", conn.stats_job(job)))
            else:
                console.print(render_stats(f"Server {address}", conn.stats()))
    except BeanlineError as exc:
        _fail(exc)


@app.command()
def tubes(
    address: str = AddressOption,
    timeout_ms: float = TimeoutOption,
) -> None:
    """List all tubes on the server."""
    try:
        with Connection(address, timeout_ms=timeout_ms) as conn:
            console.print(render_tubes(conn.list_tubes()))
    except BeanlineError as exc:
        _fail(exc)


@app.command()
def peek(
    target: str = typer.Argument(..., help="Job id, or ready / delayed / buried"),
    address: str = AddressOption,
    timeout_ms: float = TimeoutOption,
    tube: str | None = typer.Option(
        None, "--tube", "-t", help="Tube to peek in (for ready/delayed/buried)"
    ),
) -> None:
    """Show a job without reserving it."""
    try:
        with Connection(address, timeout_ms=timeout_ms) as conn:
            if tube is not None:
                conn.use_tube(tube)
            match target:
                case "ready":
                    job = conn.peek_ready()
                case "delayed":
                    job = conn.peek_delayed()
                case "buried":
                    job = conn.peek_buried()
                case _ if target.isdigit():
                    job = conn.peek(int(target))
                case _:
                    console.print(f"[bold red]Error:[/bold red] bad target {target!r}")
                    raise typer.Exit(code=2)
            console.print(render_job(job))
    except BeanlineError as exc:
        _fail(exc)


if __name__ == "__main__":
    app()
