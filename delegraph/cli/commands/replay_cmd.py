"""``delegraph replay LOG``: fold an event log and show the resulting graph.

Reads a JSON-lines export of lifecycle events into a fresh GraphStore and
renders the execution tree.  Supports animated live mode and JSON output.
"""

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


def replay_cmd(
    log_path: Path = typer.Argument(
        None,
        help="JSON-lines event log. Defaults to DELEGRAPH_EVENT_LOG_PATH.",
    ),
    run_id: str = typer.Option(
        None,
        "--run-id",
        "-r",
        help="Bind the projection to this run; events for other runs are dropped.",
    ),
    live: bool = typer.Option(
        False,
        "--live",
        "-L",
        help="Animate the replay event by event (Ctrl+C to stop).",
    ),
    delay: float = typer.Option(
        None,
        "--delay",
        "-d",
        help="Seconds to pause between events in live mode.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the final snapshot as JSON instead of a tree.",
    ),
) -> None:
    """Replay an event log into a fresh projection and display it."""
    path = log_path or config.event_log_path
    if not path.is_file():
        console.print(f"[bold red]Event log not found:[/bold red] {path}")
        raise typer.Exit(code=1)

    store = GraphStore(run_id)
    renderer = GraphRenderer(console=console)
    events = read_event_log(path)

    try:
        if live and not as_json:
            renderer.render_replay(
                events,
                store,
                delay=config.replay_delay_seconds if delay is None else delay,
                refresh_hz=config.refresh_hz,
            )
        else:
            store.apply_events(events)
    except (OSError, EventDecodeError) as exc:
        console.print(f"[bold red]Failed to read event log:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    counters = store.counters
    if as_json:
        typer.echo(json.dumps(store.snapshot().model_dump(mode="json"), indent=2))
        return

    if not live:
        renderer.print_snapshot(store.snapshot())
    console.print(
        f"[dim]applied {counters.applied}, "
        f"dropped {counters.dropped_stale} stale, "
        f"{counters.dropped_foreign} foreign[/dim]"
    )
