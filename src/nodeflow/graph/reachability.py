"""Reachability - Upstream/downstream traversal from a seed node.

Two independent breadth-first walks over a GraphIndex: one follows
incoming edges (ancestors), the other outgoing edges (descendants).
Both keep a visited set, so cycles terminate and every node is reported
once. The seed itself is never part of either node set.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from nodeflow.graph.GraphNode import GraphNode
from nodeflow.graph.index import GraphIndex, build_index
from nodeflow.graph.relations import Edge


@dataclass(frozen=True)
class Reachability:
    """Upstream and downstream sets of a seed node.

    Sets carry no ordering information.
    """

    seed_id: str
    upstream_node_ids: frozenset[str] = field(default_factory=frozenset)
    downstream_node_ids: frozenset[str] = field(default_factory=frozenset)
    upstream_edge_ids: frozenset[str] = field(default_factory=frozenset)
    downstream_edge_ids: frozenset[str] = field(default_factory=frozenset)

    def node_ids(self, include_seed: bool = True) -> set[str]:
        """Seed plus ancestors plus descendants (the highlight set)."""
        ids = set(self.upstream_node_ids) | set(self.downstream_node_ids)
        if include_seed:
            ids.add(self.seed_id)
        return ids

    def edge_ids(self) -> set[str]:
        return set(self.upstream_edge_ids) | set(self.downstream_edge_ids)

    def to_dict(self) -> dict[str, object]:
        return {
            "seed_id": self.seed_id,
            "upstream_node_ids": sorted(self.upstream_node_ids),
            "downstream_node_ids": sorted(self.downstream_node_ids),
            "upstream_edge_ids": sorted(self.upstream_edge_ids),
            "downstream_edge_ids": sorted(self.downstream_edge_ids),
        }


def _walk(index: GraphIndex, seed_id: str, upstream: bool) -> tuple[set[str], set[str]]:
    """Breadth-first walk from ``seed_id`` in one direction.

    Every edge crossed is recorded, including parallel edges and edges
    leading back to an already visited node.
    """
    node_ids: set[str] = set()
    edge_ids: set[str] = set()
    visited: set[str] = {seed_id}
    queue: deque[str] = deque([seed_id])
    while queue:
        current = queue.popleft()
        edges = index.iter_incoming_edges(current) if upstream else index.iter_outgoing_edges(current)
        for edge in edges:
            edge_ids.add(edge.id)
            neighbour = edge.source if upstream else edge.target
            if neighbour in visited:
                continue
            visited.add(neighbour)
            node_ids.add(neighbour)
            queue.append(neighbour)
    return node_ids, edge_ids


def compute_reachability(
    seed_node_id: str,
    nodes: Iterable[GraphNode],
    edges: Iterable[Edge],
    index: GraphIndex | None = None,
) -> Reachability:
    """Compute upstream and downstream node/edge sets for a seed node.

    Runs in O(nodes + edges). A seed that is not among ``nodes`` yields
    empty sets.

    Args:
        seed_node_id: Node the traversal starts from.
        nodes: Current node collection.
        edges: Current edge collection.
        index: Prebuilt index to reuse instead of building one.

    Returns:
        Reachability with the four result sets.
    """
    if index is None:
        index = build_index(nodes, edges)
    if seed_node_id not in index:
        return Reachability(seed_id=seed_node_id)

    up_nodes, up_edges = _walk(index, seed_node_id, upstream=True)
    down_nodes, down_edges = _walk(index, seed_node_id, upstream=False)
    return Reachability(
        seed_id=seed_node_id,
        upstream_node_ids=frozenset(up_nodes),
        downstream_node_ids=frozenset(down_nodes),
        upstream_edge_ids=frozenset(up_edges),
        downstream_edge_ids=frozenset(down_edges),
    )
