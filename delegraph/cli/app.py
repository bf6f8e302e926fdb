"""Main Typer application: imports and registers all CLI commands.

Entry point: ``delegraph`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from delegraph.cli.commands.replay_cmd import replay_cmd
from delegraph.cli.commands.stats_cmd import stats_cmd
from delegraph.config import configure_logging

app = typer.Typer(
    name="delegraph",
    help="delegraph: project agent delegation event streams into an execution graph.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Override DELEGRAPH_LOG_LEVEL for this invocation."
    ),
) -> None:
    configure_logging(log_level)


app.command(name="replay", help="Replay an event log and show the execution graph.")(replay_cmd)
app.command(name="stats", help="Show aggregate counters for an event log.")(stats_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
