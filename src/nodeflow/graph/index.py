"""Graph Index - Adjacency bookkeeping derived from an edge collection.

The index is rebuilt on demand and never persisted. Edges that reference
node ids outside the node collection are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from nodeflow.graph.GraphNode import GraphNode
from nodeflow.graph.relations import Edge


@dataclass
class Adjacency:
    """Incoming and outgoing neighbours of one node.

    ``incoming``/``outgoing`` hold neighbour node ids, one entry per edge,
    so parallel edges repeat the neighbour. The ``*_edges`` lists are
    aligned with them.
    """

    incoming: list[str] = field(default_factory=list)
    outgoing: list[str] = field(default_factory=list)
    incoming_edges: list[Edge] = field(default_factory=list)
    outgoing_edges: list[Edge] = field(default_factory=list)


class GraphIndex:
    """Adjacency view ``node_id -> Adjacency`` over a node/edge collection.

    Built in O(nodes + edges). Every known node has an entry, possibly
    with empty lists.
    """

    def __init__(self, nodes: Iterable[GraphNode], edges: Iterable[Edge]) -> None:
        self._adjacency: dict[str, Adjacency] = {node.id: Adjacency() for node in nodes}
        self._skipped = 0
        for edge in edges:
            source = self._adjacency.get(edge.source)
            target = self._adjacency.get(edge.target)
            if source is None or target is None:
                self._skipped += 1
                continue
            source.outgoing.append(edge.target)
            source.outgoing_edges.append(edge)
            target.incoming.append(edge.source)
            target.incoming_edges.append(edge)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    @property
    def skipped_edge_count(self) -> int:
        """Number of edges ignored because an endpoint is unknown."""
        return self._skipped

    def adjacency(self, node_id: str) -> Adjacency | None:
        return self._adjacency.get(node_id)

    def incoming(self, node_id: str) -> list[str]:
        """Return ids of nodes with an edge into ``node_id``."""
        adj = self._adjacency.get(node_id)
        return list(adj.incoming) if adj else []

    def outgoing(self, node_id: str) -> list[str]:
        """Return ids of nodes ``node_id`` has an edge into."""
        adj = self._adjacency.get(node_id)
        return list(adj.outgoing) if adj else []

    def iter_incoming_edges(self, node_id: str) -> Iterator[Edge]:
        adj = self._adjacency.get(node_id)
        if adj:
            yield from adj.incoming_edges

    def iter_outgoing_edges(self, node_id: str) -> Iterator[Edge]:
        adj = self._adjacency.get(node_id)
        if adj:
            yield from adj.outgoing_edges


def build_index(nodes: Iterable[GraphNode], edges: Iterable[Edge]) -> GraphIndex:
    """Build a GraphIndex for the given collections."""
    return GraphIndex(nodes, edges)
