"""delegraph: event-sourced execution-graph projector.

Consumes the ordered, at-least-once lifecycle event stream of a
hierarchical planner/executor delegation and rebuilds an in-memory graph
of delegated tasks and ``delegates`` edges, plus aggregate stats, for
live observability.
"""

__version__ = "0.1.0"

from delegraph.core.applier import apply_event
from delegraph.core.graph_store import GraphStore
from delegraph.core.projections import GraphSnapshot, GraphStats
from delegraph.models.events import GraphEvent

__all__ = [
    "GraphStore",
    "GraphEvent",
    "GraphSnapshot",
    "GraphStats",
    "apply_event",
    "__version__",
]
