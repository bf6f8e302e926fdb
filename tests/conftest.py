"""Shared test fixtures for delegraph."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from delegraph.core.graph_store import GraphStore
from delegraph.models.events import GraphEvent


@pytest.fixture
def run_id() -> str:
    """Provide a deterministic test run ID."""
    return "run-1"


@pytest.fixture
def store(run_id: str) -> GraphStore:
    """Provide a GraphStore pre-bound to the test run."""
    return GraphStore(run_id)


# ---------------------------------------------------------------------------
# Event factories: shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_event() -> Callable[..., GraphEvent]:
    """Factory fixture: build a GraphEvent with sensible defaults.

    ``created_at`` defaults to a timestamp derived from ``seq`` so that
    freshness stamps are easy to assert on.
    """

    def _factory(
        node_id: str = "n1",
        seq: int = 1,
        type: str = "node_status",
        payload: dict[str, Any] | None = None,
        run_id: str = "run-1",
        **overrides: Any,
    ) -> GraphEvent:
        defaults: dict[str, Any] = {
            "run_id": run_id,
            "node_id": node_id,
            "seq": seq,
            "type": type,
            "payload": payload or {},
            "created_at": f"2026-03-01T00:00:{seq:02d}Z",
        }
        defaults.update(overrides)
        return GraphEvent(**defaults)

    return _factory


@pytest.fixture
def make_created() -> Callable[..., GraphEvent]:
    """Factory fixture: a ``node_created`` event with a full payload."""

    def _factory(
        node_id: str,
        seq: int,
        parent_id: str | None = None,
        title: str | None = None,
        depth: int = 0,
        band_index: int = 0,
        step_index: int = 0,
        run_id: str = "run-1",
    ) -> GraphEvent:
        payload: dict[str, Any] = {
            "title": title or f"Task {node_id}",
            "reason": f"because {node_id}",
            "successCriteria": [f"{node_id} done"],
            "depth": depth,
            "bandIndex": band_index,
            "stepIndex": step_index,
        }
        if parent_id is not None:
            payload["parentNodeId"] = parent_id
        return GraphEvent(
            run_id=run_id,
            node_id=node_id,
            seq=seq,
            type="node_created",
            payload=payload,
            created_at=f"2026-03-01T00:00:{seq:02d}Z",
        )

    return _factory


@pytest.fixture
def event_log(tmp_path: Path) -> Path:
    """A small JSON-lines event log: root, two children, one failure."""
    lines = [
        '{"runId":"run-1","nodeId":"root","seq":1,"type":"tree.node_created",'
        '"payload":{"title":"Root","depth":0,"bandIndex":0,"stepIndex":0},'
        '"createdAt":"2026-03-01T00:00:01Z"}',
        '{"runId":"run-1","nodeId":"a","seq":2,"type":"tree.node_created",'
        '"payload":{"parentNodeId":"root","title":"Alpha","depth":1,"bandIndex":0,"stepIndex":0},'
        '"createdAt":"2026-03-01T00:00:02Z"}',
        '{"runId":"run-1","nodeId":"b","seq":3,"type":"tree.node_created",'
        '"payload":{"parentNodeId":"root","title":"Beta","depth":1,"bandIndex":0,"stepIndex":1},'
        '"createdAt":"2026-03-01T00:00:03Z"}',
        "",
        "this line is not json",
        '{"runId":"run-1","nodeId":"a","seq":4,"type":"tree.node_completed",'
        '"payload":{},"createdAt":"2026-03-01T00:00:04Z"}',
        '{"runId":"run-1","nodeId":"b","seq":5,"type":"tree.node_failed",'
        '"payload":{"error":"boom","retryable":false},"createdAt":"2026-03-01T00:00:05Z"}',
        '{"runId":"run-2","nodeId":"x","seq":6,"type":"tree.node_created",'
        '"payload":{"title":"Other run"},"createdAt":"2026-03-01T00:00:06Z"}',
    ]
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
