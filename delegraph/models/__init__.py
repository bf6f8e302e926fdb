"""delegraph data models: all Pydantic v2, all frozen (immutable)."""

from delegraph.models.events import (
    AUXILIARY_EVENT_TYPES,
    KNOWN_EVENT_TYPES,
    EventType,
    GraphEvent,
    is_known_event_type,
    normalize_event_row,
    normalize_event_type,
)
from delegraph.models.graph import (
    TERMINAL_STATUSES,
    EdgeKind,
    GraphEdge,
    GraphNode,
    LastTool,
    NodeRole,
    NodeStatus,
    ProjectionState,
    ToolStatus,
    edge_id,
)

__all__ = [
    # events
    "EventType",
    "GraphEvent",
    "AUXILIARY_EVENT_TYPES",
    "KNOWN_EVENT_TYPES",
    "is_known_event_type",
    "normalize_event_row",
    "normalize_event_type",
    # graph
    "NodeStatus",
    "NodeRole",
    "ToolStatus",
    "EdgeKind",
    "TERMINAL_STATUSES",
    "LastTool",
    "GraphNode",
    "GraphEdge",
    "ProjectionState",
    "edge_id",
]
