"""``delegraph stats LOG``: aggregate counters for an event log."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from delegraph.config import config
from delegraph.core.event_source import EventDecodeError, read_event_log
from delegraph.core.graph_store import GraphStore
from delegraph.monitor.renderer import GraphRenderer

console = Console()


def stats_cmd(
    log_path: Path = typer.Argument(
        None,
        help="JSON-lines event log. Defaults to DELEGRAPH_EVENT_LOG_PATH.",
    ),
    run_id: str = typer.Option(
        None, "--run-id", "-r", help="Bind the projection to this run."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print stats as JSON."),
) -> None:
    """Show node/edge counts and status buckets for a replayed run."""
    path = log_path or config.event_log_path
    if not path.is_file():
        console.print(f"[bold red]Event log not found:[/bold red] {path}")
        raise typer.Exit(code=1)

    store = GraphStore(run_id)
    try:
        store.apply_events(read_event_log(path))
    except (OSError, EventDecodeError) as exc:
        console.print(f"[bold red]Failed to read event log:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(json.dumps(store.stats.model_dump(mode="json"), indent=2))
    else:
        GraphRenderer(console=console).print_stats(store.stats)
