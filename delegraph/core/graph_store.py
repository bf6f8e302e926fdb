"""GraphStore: owns one run's projection and guards how events reach it.

The store is the sole writer of its state.  Every accepted event
replaces the state object (copy-on-write), so consumers can detect
change by comparing references.

Guards, in order, for each event:
1. The run is bound to the first ``run_id`` seen since the last reset.
2. Events for any other run are dropped.
3. Events with ``seq <= last_seq`` are dropped (stale or redelivered).
4. Everything else goes through the applier and advances ``last_seq``.

Dropped events never raise.  Events that arrive behind the watermark are
discarded, not merged, so callers must deliver each run's events in
non-decreasing ``seq`` order to capture everything.

Single-threaded and synchronous; callers that share a store across
threads must serialize calls themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict

from delegraph.core.applier import apply_event
from delegraph.core.projections import (
    GraphSnapshot,
    GraphStats,
    build_snapshot,
    compute_stats,
    project_edges,
    project_nodes,
)
from delegraph.models.events import GraphEvent
from delegraph.models.graph import GraphEdge, GraphNode, ProjectionState

logger = logging.getLogger(__name__)

StateListener = Callable[[ProjectionState], None]


class StoreCounters(BaseModel):
    """How many events the store has applied or dropped since the last reset."""

    model_config = ConfigDict(frozen=True)

    applied: int = 0
    dropped_stale: int = 0
    dropped_foreign: int = 0


class GraphStore:
    """Projection of a single run's execution graph.

    Parameters
    ----------
    run_id:
        Optional run to pre-bind, as if ``reset(run_id)`` had been called.

    Usage
    -----
    >>> store = GraphStore("run-1")
    >>> unsubscribe = store.subscribe(lambda state: print(state.last_seq))
    >>> store.apply_events(events)
    >>> store.stats.node_count
    """

    def __init__(self, run_id: str | None = None) -> None:
        self._state = ProjectionState.empty(run_id)
        self._counters = StoreCounters()
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, run_id: str | None = None) -> None:
        """Discard all accumulated state, optionally pre-binding *run_id*."""
        previous = self._state.run_id
        self._state = ProjectionState.empty(run_id)
        self._counters = StoreCounters()
        logger.info("Graph store reset (previous run %s, bound run %s)", previous, run_id)
        self._notify()

    # ------------------------------------------------------------------
    # Event application
    # ------------------------------------------------------------------

    def apply_event(self, event: GraphEvent) -> bool:
        """Apply one event.  Returns ``True`` if it changed nodes/edges."""
        changed = self._apply(event)
        if changed:
            self._notify()
        return changed

    def apply_events(self, events: Iterable[GraphEvent]) -> int:
        """Fold *events* in the given order.  Returns how many were applied.

        Subscribers are notified once at the end if anything was applied.
        """
        applied = 0
        for event in events:
            if self._apply(event):
                applied += 1
        if applied:
            self._notify()
        return applied

    def _apply(self, event: GraphEvent) -> bool:
        state = self._state
        next_run_id = state.run_id if state.run_id is not None else event.run_id

        if state.run_id is not None and state.run_id != event.run_id:
            logger.debug(
                "Dropping event seq=%s for foreign run %s (bound to %s)",
                event.seq,
                event.run_id,
                state.run_id,
            )
            self._counters = self._counters.model_copy(
                update={"dropped_foreign": self._counters.dropped_foreign + 1}
            )
            return False

        if event.seq <= state.last_seq:
            logger.debug(
                "Dropping stale event seq=%s type=%s for node %s (watermark %s)",
                event.seq,
                event.type,
                event.node_id,
                state.last_seq,
            )
            self._counters = self._counters.model_copy(
                update={"dropped_stale": self._counters.dropped_stale + 1}
            )
            return False

        if state.run_id is None:
            logger.info("Graph store bound to run %s", next_run_id)

        self._state = apply_event(state, event).model_copy(
            update={"run_id": next_run_id, "last_seq": event.seq}
        )
        self._counters = self._counters.model_copy(
            update={"applied": self._counters.applied + 1}
        )
        return True

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* for state replacements.

        The listener is called with the new ``ProjectionState`` after every
        reset and after every call that applied at least one event.
        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as exc:  # noqa: BLE001
                logger.error("State listener %r failed: %s", listener, exc)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> ProjectionState:
        return self._state

    @property
    def run_id(self) -> str | None:
        return self._state.run_id

    @property
    def last_seq(self) -> int:
        return self._state.last_seq

    @property
    def counters(self) -> StoreCounters:
        return self._counters

    @property
    def nodes(self) -> list[GraphNode]:
        return project_nodes(self._state)

    @property
    def edges(self) -> list[GraphEdge]:
        return project_edges(self._state)

    @property
    def stats(self) -> GraphStats:
        return compute_stats(self._state)

    def snapshot(self) -> GraphSnapshot:
        return build_snapshot(self._state)
