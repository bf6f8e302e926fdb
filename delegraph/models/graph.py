"""Execution-graph models: nodes, delegation edges, projection state.

Every model is a frozen Pydantic model.  The projection never mutates a
model in place: changes produce new instances via ``model_copy`` so that
consumers can detect change by identity.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class NodeStatus(str, Enum):
    """Lifecycle status of a delegated node, as reported upstream."""

    PLANNING = "planning"
    DELEGATING = "delegating"
    EXECUTING = "executing"
    WAITING = "waiting"
    AGGREGATING = "aggregating"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    FAILED = "failed"


# Terminal statuses have no outgoing transitions upstream.  The projector
# does not enforce this; it only uses the set for classification.
TERMINAL_STATUSES: frozenset[NodeStatus] = frozenset(
    {NodeStatus.COMPLETED, NodeStatus.FAILED}
)


class NodeRole(str, Enum):
    """Role a node currently plays in the delegation tree."""

    PLANNER = "planner"
    EXECUTOR = "executor"


class ToolStatus(str, Enum):
    RUNNING = "running"
    OK = "ok"
    ERROR = "error"


class EdgeKind(str, Enum):
    DELEGATES = "delegates"


class LastTool(BaseModel):
    """The most recent tool call observed for a node."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: ToolStatus = ToolStatus.RUNNING
    phase: str | None = None
    updated_at: str | None = None


class GraphNode(BaseModel):
    """One delegated unit of work in the execution tree.

    Positioned by ``depth`` / ``band_index`` / ``step_index``.  The
    ``artifact_ids`` and ``document_ids`` lists are ordered and never
    contain duplicates.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    parent_id: str | None = None
    title: str
    reason: str | None = None
    success_criteria: list[str] = []
    status: NodeStatus = NodeStatus.PLANNING
    role: NodeRole = NodeRole.PLANNER
    depth: int = 0
    band_index: int = 0
    step_index: int = 0
    scratchpad_doc_id: str | None = None
    artifact_ids: list[str] = []
    document_ids: list[str] = []
    result: dict[str, Any] | None = None
    last_tool: LastTool | None = None
    last_seq: int = 0
    last_updated_at: str | None = None

    @classmethod
    def placeholder(cls, node_id: str) -> GraphNode:
        """Synthesize a node referenced before its ``node_created`` event."""
        return cls(id=node_id, title=node_id)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def edge_id(source: str, target: str) -> str:
    """Deterministic edge id: the same endpoints always give the same id."""
    return f"{source}->{target}"


class GraphEdge(BaseModel):
    """A directed ``delegates`` relationship from parent to child."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    target: str
    kind: EdgeKind = EdgeKind.DELEGATES

    @classmethod
    def delegates(cls, source: str, target: str) -> GraphEdge:
        return cls(id=edge_id(source, target), source=source, target=target)


class ProjectionState(BaseModel):
    """The whole projection for at most one run.

    ``last_seq`` is the run-scoped watermark; it starts at 0 and never
    decreases while the run stays bound.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str | None = None
    nodes: dict[str, GraphNode] = {}
    edges: dict[str, GraphEdge] = {}
    last_seq: int = 0

    @classmethod
    def empty(cls, run_id: str | None = None) -> ProjectionState:
        return cls(run_id=run_id)
