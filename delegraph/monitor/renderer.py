"""Rich terminal renderer for the execution graph.

Turns ``GraphSnapshot`` into a Rich tree of delegated nodes with a
stats footer, and can animate an event replay with ``Rich.Live``.

Color scheme
------------
- dim         : PLANNING
- cyan        : DELEGATING / AGGREGATING
- yellow      : EXECUTING / WAITING
- bold red    : BLOCKED / FAILED
- green       : COMPLETED
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from delegraph.core.projections import (
    GraphSnapshot,
    GraphStats,
    children_of,
    ordered_nodes,
    root_ids,
)
from delegraph.models.graph import (
    GraphNode,
    NodeStatus,
    ProjectionState,
    ToolStatus,
)

if TYPE_CHECKING:
    from delegraph.core.graph_store import GraphStore
    from delegraph.models.events import GraphEvent


# ---------------------------------------------------------------------------
# Status -> Rich style mapping
# ---------------------------------------------------------------------------

_STATUS_STYLES: dict[NodeStatus, str] = {
    NodeStatus.PLANNING: "dim",
    NodeStatus.DELEGATING: "cyan",
    NodeStatus.EXECUTING: "bold yellow",
    NodeStatus.WAITING: "yellow",
    NodeStatus.AGGREGATING: "bold cyan",
    NodeStatus.BLOCKED: "bold red",
    NodeStatus.COMPLETED: "bold green",
    NodeStatus.FAILED: "bold red",
}

_TOOL_STYLES: dict[ToolStatus, str] = {
    ToolStatus.RUNNING: "yellow",
    ToolStatus.OK: "green",
    ToolStatus.ERROR: "red",
}


def _snapshot_state(snapshot: GraphSnapshot) -> ProjectionState:
    """Rebuild a lookup-friendly state from a snapshot's lists."""
    return ProjectionState(
        run_id=snapshot.stats.run_id,
        nodes={n.id: n for n in snapshot.nodes},
        edges={e.id: e for e in snapshot.edges},
        last_seq=snapshot.stats.last_seq,
    )


class GraphRenderer:
    """Renders ``GraphSnapshot`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Single snapshot render
    # ------------------------------------------------------------------

    def render_snapshot(self, snapshot: GraphSnapshot) -> Panel:
        """Render a snapshot as a Panel holding the node tree and a summary."""
        state = _snapshot_state(snapshot)
        stats = snapshot.stats

        if state.nodes:
            body = self._build_tree(state)
        else:
            body = Text.from_markup("[dim]No nodes yet.[/dim]")

        summary = "  |  ".join(
            [
                f"[bold]Run:[/bold] {stats.run_id or '-'}",
                f"[bold]Seq:[/bold] {stats.last_seq}",
                f"[bold]Nodes:[/bold] {stats.node_count}",
                f"[bold]Edges:[/bold] {stats.edge_count}",
                f"[yellow]Active: {stats.active_count}[/yellow]",
                f"[green]Completed: {stats.completed_count}[/green]",
                f"[red]Failed: {stats.failed_count}[/red]",
            ]
        )

        return Panel(
            Group(body, Text(""), Text.from_markup(summary)),
            title="[bold]Execution Graph[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    def _node_label(self, node: GraphNode) -> Text:
        style = _STATUS_STYLES.get(node.status, "")
        label = Text()
        label.append(node.title, style=style)
        label.append(f"  [{node.status.value}]", style=style)
        label.append(f" {node.role.value}", style="dim")
        label.append(
            f" d{node.depth}.b{node.band_index}.s{node.step_index}", style="dim"
        )
        if node.last_tool:
            tool_style = _TOOL_STYLES.get(node.last_tool.status, "")
            label.append(
                f"  tool:{node.last_tool.name}={node.last_tool.status.value}",
                style=tool_style,
            )
        if node.artifact_ids:
            label.append(f"  artifacts:{len(node.artifact_ids)}", style="magenta")
        return label

    def _build_tree(self, state: ProjectionState) -> Tree:
        tree = Tree(Text(state.run_id or "run", style="bold"), guide_style="dim")
        visited: set[str] = set()

        def add(branch: Tree, node_id: str) -> None:
            # Edges come from upstream; guard against cycles.
            if node_id in visited or node_id not in state.nodes:
                return
            visited.add(node_id)
            child_branch = branch.add(self._node_label(state.nodes[node_id]))
            for child_id in children_of(state, node_id):
                add(child_branch, child_id)

        for node_id in root_ids(state):
            add(tree, node_id)
        # Nodes only reachable through a cycle have no root above them.
        for node in ordered_nodes(state):
            add(tree, node.id)
        return tree

    def render_stats(self, stats: GraphStats) -> Table:
        """Render stats as a two-column table."""
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        for name, value in stats.model_dump().items():
            table.add_row(name, "-" if value is None else str(value))
        return table

    # ------------------------------------------------------------------
    # Replay with live rendering
    # ------------------------------------------------------------------

    def render_replay(
        self,
        events: Iterable[GraphEvent],
        store: GraphStore,
        *,
        delay: float = 0.0,
        refresh_hz: float = 2.0,
    ) -> int:
        """Feed *events* into *store* one by one, redrawing as it changes.

        Returns the number of events the store applied.  Ctrl+C stops the
        replay and leaves the last rendered frame on screen.
        """
        applied = 0
        with Live(
            self.render_snapshot(store.snapshot()),
            console=self.console,
            refresh_per_second=refresh_hz,
            transient=False,
        ) as live:
            unsubscribe = store.subscribe(
                lambda _state: live.update(self.render_snapshot(store.snapshot()))
            )
            try:
                for event in events:
                    if store.apply_event(event):
                        applied += 1
                    if delay > 0:
                        time.sleep(delay)
            except KeyboardInterrupt:
                pass
            finally:
                unsubscribe()
        return applied

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_snapshot(self, snapshot: GraphSnapshot) -> None:
        self.console.print(self.render_snapshot(snapshot))

    def print_stats(self, stats: GraphStats) -> None:
        self.console.print(self.render_stats(stats))
