"""Relations - Directed edges between flow graph nodes."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


def new_edge_id() -> str:
    """Generate a fresh, globally unique edge id."""
    return uuid4().hex


@dataclass
class Edge:
    """A directed edge between two graph nodes.

    Endpoints are stored as node ids. ``source`` and ``target`` may be
    replaced by a reconnect; ``id`` never changes.

    Attributes:
        id: Unique identifier for this edge.
        source: ID of the node the edge leaves.
        target: ID of the node the edge points to.
    """

    id: str
    source: str
    target: str

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def touches(self, node_ids: set[str] | frozenset[str]) -> bool:
        """Check whether either endpoint is one of ``node_ids``."""
        return self.source in node_ids or self.target in node_ids

    def copy(self) -> Edge:
        return Edge(id=self.id, source=self.source, target=self.target)

    def __str__(self) -> str:
        return f"{self.source[:8]} --> {self.target[:8]} [{self.id[:8]}]"


def make_edge(source: str, target: str, edge_id: str | None = None) -> Edge:
    """Create an edge with a fresh id unless one is given."""
    return Edge(id=edge_id or new_edge_id(), source=source, target=target)
