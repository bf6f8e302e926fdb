"""Derived read-only views over a ``ProjectionState``.

Every function here is pure and recomputed on each call.  Graphs are
tens to low hundreds of nodes per run, so nothing is cached.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from delegraph.models.graph import (
    GraphEdge,
    GraphNode,
    NodeStatus,
    ProjectionState,
)


class GraphStats(BaseModel):
    """Aggregate counters for one projection.

    ``active_count + completed_count + failed_count == node_count``.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str | None = None
    last_seq: int = 0
    node_count: int = 0
    edge_count: int = 0
    active_count: int = 0
    completed_count: int = 0
    failed_count: int = 0


class GraphSnapshot(BaseModel):
    """A frozen, point-in-time copy of nodes, edges and stats."""

    model_config = ConfigDict(frozen=True)

    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    stats: GraphStats = GraphStats()


def project_nodes(state: ProjectionState) -> list[GraphNode]:
    return list(state.nodes.values())


def project_edges(state: ProjectionState) -> list[GraphEdge]:
    return list(state.edges.values())


def compute_stats(state: ProjectionState) -> GraphStats:
    """Classify every node in a single pass."""
    completed = 0
    failed = 0
    active = 0
    for node in state.nodes.values():
        if node.status == NodeStatus.COMPLETED:
            completed += 1
        elif node.status == NodeStatus.FAILED:
            failed += 1
        else:
            active += 1

    return GraphStats(
        run_id=state.run_id,
        last_seq=state.last_seq,
        node_count=len(state.nodes),
        edge_count=len(state.edges),
        active_count=active,
        completed_count=completed,
        failed_count=failed,
    )


def _layout_key(node: GraphNode) -> tuple[int, int, int, str]:
    return (node.depth, node.band_index, node.step_index, node.id)


def ordered_nodes(state: ProjectionState) -> list[GraphNode]:
    """Nodes in tree layout order: depth, then band, then step."""
    return sorted(state.nodes.values(), key=_layout_key)


def children_of(state: ProjectionState, node_id: str) -> list[str]:
    """Ids of nodes delegated from *node_id*, in layout order.

    Children that are only known through an edge (no event seen for them
    yet) sort after the known ones.
    """
    targets = [e.target for e in state.edges.values() if e.source == node_id]
    known = [state.nodes[t] for t in targets if t in state.nodes]
    unknown = sorted(t for t in targets if t not in state.nodes)
    return [n.id for n in sorted(known, key=_layout_key)] + unknown


def root_ids(state: ProjectionState) -> list[str]:
    """Ids of nodes with no known parent, in layout order.

    A node whose parent has not been seen yet counts as a root so the
    subtree stays reachable from the top of the tree.
    """
    targets = {
        e.target for e in state.edges.values() if e.source in state.nodes
    }
    return [n.id for n in ordered_nodes(state) if n.id not in targets]


def build_snapshot(state: ProjectionState) -> GraphSnapshot:
    return GraphSnapshot(
        nodes=project_nodes(state),
        edges=project_edges(state),
        stats=compute_stats(state),
    )
