"""Lifecycle events emitted by the delegation orchestrator.

Each event is an immutable, per-run-sequenced fact about one node.  The
wire shape is camelCase (``runId``, ``nodeId``, ``createdAt``); the model
accepts both that and snake_case and serializes back to the wire shape
with ``by_alias=True``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Upstream namespaces every event type, e.g. "tree.node_created".
DEFAULT_TYPE_PREFIX = "tree."


class EventType(str, Enum):
    """Event types the applier has specific handling for."""

    NODE_CREATED = "node_created"
    NODE_STATUS = "node_status"
    SCRATCHPAD_LINKED = "scratchpad_linked"
    TOOL_CALL_REQUESTED = "tool_call_requested"
    TOOL_CALL_RESULT = "tool_call_result"
    ARTIFACT_CREATED = "artifact_created"
    NODE_RESULT = "node_result"
    NODE_COMPLETED = "node_completed"
    NODE_FAILED = "node_failed"


# The rest of the upstream vocabulary.  These carry no graph-shaping data
# and are applied as metadata-only touches.
AUXILIARY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        "run_started",
        "plan_created",
        "plan_band_created",
        "step_created",
        "step_status",
        "node_delegated",
        "scratchpad_updated",
        "tools_manifest",
        "context_warning",
        "parent_hint",
        "node_aggregated",
        "replan_requested",
    }
)

KNOWN_EVENT_TYPES: frozenset[str] = frozenset(
    {t.value for t in EventType} | AUXILIARY_EVENT_TYPES
)


def normalize_event_type(value: str, prefix: str = DEFAULT_TYPE_PREFIX) -> str:
    """Strip the upstream namespace so ``tree.node_status`` == ``node_status``."""
    if prefix and value.startswith(prefix):
        return value[len(prefix):]
    return value


def is_known_event_type(value: str) -> bool:
    return normalize_event_type(value) in KNOWN_EVENT_TYPES


class GraphEvent(BaseModel):
    """A single lifecycle event for one node of one run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    run_id: str = Field(alias="runId")
    node_id: str = Field(alias="nodeId")
    seq: int = Field(ge=1)
    type: str
    payload: dict[str, Any] = {}
    created_at: str = Field(alias="createdAt")

    @field_validator("payload", mode="before")
    @classmethod
    def _none_payload_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def kind(self) -> str:
        """The event type with the upstream namespace stripped."""
        return normalize_event_type(self.type)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _coerce_seq(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip(), 10)
        except ValueError:
            return None
    return None


def normalize_event_row(row: Mapping[str, Any]) -> GraphEvent | None:
    """Best-effort conversion of a stored event row into a ``GraphEvent``.

    Rows look like ``{id, run_id, node_id, seq, event_type, payload,
    created_at}`` where ``seq`` may arrive as a numeric string.  Rows that
    cannot be ordered (missing or non-integer ``seq``) or that fail
    validation yield ``None``.  Unknown event types are kept.
    """
    seq = _coerce_seq(row.get("seq"))
    if seq is None:
        logger.debug("Skipping event row %s: unusable seq %r", row.get("id"), row.get("seq"))
        return None

    try:
        return GraphEvent(
            run_id=row.get("run_id"),
            node_id=row.get("node_id"),
            seq=seq,
            type=row.get("event_type"),
            payload=row.get("payload"),
            created_at=row.get("created_at"),
        )
    except ValidationError as exc:
        logger.debug("Skipping malformed event row %s: %s", row.get("id"), exc)
        return None
