"""Event applier: pure reducer from (state, event) to the next state.

No I/O and no side effects.  The input state is never mutated: the
result carries new ``nodes`` / ``edges`` dicts, sharing every untouched
node instance with the input.

Payloads are read leniently.  A missing or wrong-typed field falls back
to the node's existing value, so a malformed payload can degrade the
projection but never raise.  Event types without a handler are applied
as a metadata-only touch (``last_seq`` / ``last_updated_at``).
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, TypeVar

from delegraph.models.events import EventType, GraphEvent
from delegraph.models.graph import (
    GraphEdge,
    GraphNode,
    LastTool,
    NodeRole,
    NodeStatus,
    ProjectionState,
    ToolStatus,
)

E = TypeVar("E", bound=Enum)

# A handler turns (current node, event payload, event) into field updates.
NodeHandler = Callable[[GraphNode, dict[str, Any], GraphEvent], dict[str, Any]]


# ---------------------------------------------------------------------------
# Lenient payload readers
# ---------------------------------------------------------------------------


def _opt_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else None


def _opt_int(payload: dict[str, Any], key: str) -> int | None:
    value = payload.get(key)
    # bool is an int subclass; a coordinate of True is malformed
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _opt_str_list(payload: dict[str, Any], key: str) -> list[str] | None:
    value = payload.get(key)
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _opt_enum(enum_cls: type[E], value: Any) -> E | None:
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _unique(values: Iterable[str]) -> list[str]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(values))


def _append_unique(existing: list[str], value: str | None) -> list[str]:
    if value is None or value in existing:
        return existing
    return [*existing, value]


# ---------------------------------------------------------------------------
# Per-type handlers
# ---------------------------------------------------------------------------


def _on_node_created(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    criteria = _opt_str_list(payload, "successCriteria")
    return {
        "parent_id": _opt_str(payload, "parentNodeId") or node.parent_id,
        "title": _opt_str(payload, "title") or node.title,
        "reason": _opt_str(payload, "reason") or node.reason,
        "success_criteria": criteria if criteria is not None else node.success_criteria,
        "depth": _coalesce(_opt_int(payload, "depth"), node.depth),
        "band_index": _coalesce(_opt_int(payload, "bandIndex"), node.band_index),
        "step_index": _coalesce(_opt_int(payload, "stepIndex"), node.step_index),
    }


def _on_node_status(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    return {
        "status": _opt_enum(NodeStatus, payload.get("status")) or node.status,
        "role": _opt_enum(NodeRole, payload.get("role")) or node.role,
    }


def _on_scratchpad_linked(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    return {
        "scratchpad_doc_id": _opt_str(payload, "scratchpadDocId")
        or node.scratchpad_doc_id
    }


def _on_tool_call_requested(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    previous = node.last_tool
    tool = LastTool(
        name=_opt_str(payload, "toolName") or (previous.name if previous else "unknown"),
        status=ToolStatus.RUNNING,
        phase=_opt_str(payload, "phase") or (previous.phase if previous else None),
        updated_at=_opt_str(payload, "startedAt") or event.created_at,
    )
    return {"last_tool": tool}


def _on_tool_call_result(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    previous = node.last_tool
    ok = payload.get("ok")
    if isinstance(ok, bool):
        status = ToolStatus.OK if ok else ToolStatus.ERROR
    else:
        status = previous.status if previous else ToolStatus.ERROR
    tool = LastTool(
        name=_opt_str(payload, "toolName") or (previous.name if previous else "unknown"),
        status=status,
        phase=_opt_str(payload, "phase") or (previous.phase if previous else None),
        updated_at=_opt_str(payload, "completedAt") or event.created_at,
    )
    return {"last_tool": tool}


def _on_artifact_created(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    return {
        "artifact_ids": _append_unique(node.artifact_ids, _opt_str(payload, "artifactId")),
        "document_ids": _append_unique(node.document_ids, _opt_str(payload, "documentId")),
    }


def _on_node_result(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    result = payload.get("result")
    if not isinstance(result, dict):
        return {}

    updates: dict[str, Any] = {"result": copy.deepcopy(result)}
    artifact_ids = _opt_str_list(result, "artifactIds")
    if artifact_ids is not None:
        updates["artifact_ids"] = _unique(artifact_ids)
    document_ids = _opt_str_list(result, "documentIds")
    if document_ids is not None:
        updates["document_ids"] = _unique(document_ids)
    return updates


def _on_node_completed(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    return {"status": NodeStatus.COMPLETED}


def _on_node_failed(
    node: GraphNode, payload: dict[str, Any], event: GraphEvent
) -> dict[str, Any]:
    return {"status": NodeStatus.FAILED}


def _coalesce(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


EVENT_HANDLERS: dict[str, NodeHandler] = {
    EventType.NODE_CREATED.value: _on_node_created,
    EventType.NODE_STATUS.value: _on_node_status,
    EventType.SCRATCHPAD_LINKED.value: _on_scratchpad_linked,
    EventType.TOOL_CALL_REQUESTED.value: _on_tool_call_requested,
    EventType.TOOL_CALL_RESULT.value: _on_tool_call_result,
    EventType.ARTIFACT_CREATED.value: _on_artifact_created,
    EventType.NODE_RESULT.value: _on_node_result,
    EventType.NODE_COMPLETED.value: _on_node_completed,
    EventType.NODE_FAILED.value: _on_node_failed,
}


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


def apply_event(state: ProjectionState, event: GraphEvent) -> ProjectionState:
    """Return the state that results from applying *event* to *state*.

    Touches exactly one node (synthesizing it with defaults when no
    ``node_created`` has been seen) and, for ``node_created`` with a
    parent, upserts one ``delegates`` edge.  Run binding and the
    watermark are the caller's concern and are left unchanged.
    """
    kind = event.kind
    node = state.nodes.get(event.node_id) or GraphNode.placeholder(event.node_id)

    handler = EVENT_HANDLERS.get(kind)
    updates = handler(node, event.payload, event) if handler else {}
    updates["last_seq"] = event.seq
    updates["last_updated_at"] = event.created_at

    nodes = dict(state.nodes)
    nodes[node.id] = node.model_copy(update=updates)

    edges = dict(state.edges)
    if kind == EventType.NODE_CREATED.value:
        parent_id = _opt_str(event.payload, "parentNodeId")
        if parent_id:
            edge = GraphEdge.delegates(parent_id, node.id)
            edges[edge.id] = edge

    return state.model_copy(update={"nodes": nodes, "edges": edges})
