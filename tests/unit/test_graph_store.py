"""Tests for GraphStore: run binding, watermark guard, copy-on-write, subscribers."""

from __future__ import annotations

import logging

from delegraph.core.graph_store import GraphStore
from delegraph.models.graph import NodeStatus


class TestRunBinding:
    def test_unbound_store_binds_to_first_run(self, make_event):
        store = GraphStore()
        assert store.run_id is None
        store.apply_event(make_event("n1", 1, run_id="run-7"))
        assert store.run_id == "run-7"

    def test_prebound_store_drops_other_runs(self, make_event):
        store = GraphStore("run-1")
        assert store.apply_event(make_event("n1", 1, run_id="run-2")) is False
        assert store.nodes == []
        assert store.run_id == "run-1"
        assert store.last_seq == 0

    def test_foreign_event_leaves_graph_untouched(self, store, make_created):
        store.apply_event(make_created("n1", 1))
        state_before = store.state
        applied = store.apply_event(make_created("n9", 2, parent_id="n1", run_id="run-2"))
        assert applied is False
        assert store.state is state_before
        assert store.counters.dropped_foreign == 1

    def test_reset_rebinds(self, store, make_event):
        store.apply_event(make_event("n1", 1))
        store.reset("run-2")
        assert store.run_id == "run-2"
        assert store.nodes == []
        assert store.last_seq == 0
        assert store.apply_event(make_event("n1", 1, run_id="run-2")) is True

    def test_reset_without_run_unbinds(self, store, make_event):
        store.apply_event(make_event("n1", 3))
        store.reset()
        assert store.run_id is None
        store.apply_event(make_event("n1", 1, run_id="run-3"))
        assert store.run_id == "run-3"


class TestWatermark:
    def test_last_seq_advances(self, store, make_event):
        store.apply_event(make_event("n1", 1))
        store.apply_event(make_event("n1", 4))
        assert store.last_seq == 4

    def test_duplicate_is_noop(self, store, make_event):
        event = make_event("n1", 1, "node_status", {"status": "executing", "role": "executor"})
        assert store.apply_event(event) is True
        state_once = store.state
        assert store.apply_event(event) is False
        assert store.state is state_once
        assert store.counters.dropped_stale == 1

    def test_stale_event_dropped(self, store, make_event):
        store.apply_event(make_event("n1", 5, "node_completed"))
        store.apply_event(make_event("n1", 3, "node_status", {"status": "executing", "role": "executor"}))
        assert store.state.nodes["n1"].status == NodeStatus.COMPLETED
        assert store.last_seq == 5

    def test_watermark_is_run_scoped_not_node_scoped(self, store, make_event):
        store.apply_event(make_event("n1", 5))
        assert store.apply_event(make_event("n2", 4)) is False
        assert "n2" not in store.state.nodes


class TestApplyEvents:
    def test_folds_in_order_and_counts(self, store, make_created, make_event):
        applied = store.apply_events(
            [
                make_created("n1", 1),
                make_created("n2", 2, parent_id="n1"),
                make_event("n2", 2, "node_completed"),
                make_event("n2", 3, "node_completed"),
            ]
        )
        assert applied == 3
        assert store.counters.applied == 3
        assert store.counters.dropped_stale == 1

    def test_accepts_generators(self, store, make_event):
        applied = store.apply_events(make_event(f"n{i}", i) for i in range(1, 4))
        assert applied == 3
        assert len(store.nodes) == 3


class TestCopyOnWrite:
    def test_each_applied_event_replaces_containers(self, store, make_created):
        store.apply_event(make_created("n1", 1))
        first = store.state
        store.apply_event(make_created("n2", 2, parent_id="n1"))
        second = store.state
        assert second is not first
        assert second.nodes is not first.nodes
        assert second.edges is not first.edges
        assert "n2" not in first.nodes
        assert first.edges == {}


class TestSubscribers:
    def test_listener_receives_new_state(self, store, make_event):
        seen = []
        store.subscribe(seen.append)
        store.apply_event(make_event("n1", 1))
        assert seen == [store.state]

    def test_listener_not_called_for_dropped_events(self, store, make_event):
        store.apply_event(make_event("n1", 1))
        seen = []
        store.subscribe(seen.append)
        store.apply_event(make_event("n1", 1))
        store.apply_event(make_event("n1", 2, run_id="run-2"))
        assert seen == []

    def test_apply_events_notifies_once(self, store, make_event):
        seen = []
        store.subscribe(seen.append)
        store.apply_events([make_event("n1", 1), make_event("n1", 2), make_event("n1", 3)])
        assert len(seen) == 1
        assert seen[0].last_seq == 3

    def test_reset_notifies(self, store):
        seen = []
        store.subscribe(seen.append)
        store.reset("run-9")
        assert len(seen) == 1
        assert seen[0].run_id == "run-9"

    def test_unsubscribe(self, store, make_event):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()  # second call is harmless
        store.apply_event(make_event("n1", 1))
        assert seen == []

    def test_failing_listener_does_not_block_others(self, store, make_event, caplog):
        def explode(_state):
            raise RuntimeError("listener exploded")

        seen = []
        store.subscribe(explode)
        store.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="delegraph.core.graph_store"):
            assert store.apply_event(make_event("n1", 1)) is True
        assert len(seen) == 1
        assert store.last_seq == 1
        assert "listener exploded" in caplog.text


class TestIndependentInstances:
    def test_two_stores_do_not_share_state(self, make_event):
        a = GraphStore("run-a")
        b = GraphStore("run-b")
        a.apply_event(make_event("n1", 1, run_id="run-a"))
        b.apply_event(make_event("n1", 1, run_id="run-b"))
        b.apply_event(make_event("n2", 2, run_id="run-b"))
        assert a.stats.node_count == 1
        assert b.stats.node_count == 2
