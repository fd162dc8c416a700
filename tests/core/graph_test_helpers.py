"""Test helpers for building flow graphs by label.

Tests describe graphs as labels and (source, target) label pairs and
assert on labels, so generated ids never leak into expectations.
"""

from __future__ import annotations

from nodeflow.graph import FlowGraph, NodeKind
from nodeflow.graph.reachability import Reachability


def build_graph(
    labels: list[str],
    edges: list[tuple[str, str]] | None = None,
    kind: NodeKind = NodeKind.SIMPLE,
) -> FlowGraph:
    """Build a FlowGraph whose node ids equal their labels.

    Args:
        labels: Node labels in creation order.
        edges: (source label, target label) pairs; edge ids are "src->tgt",
            suffixed with "#n" for parallel edges.
        kind: Kind used for every node.
    """
    graph = FlowGraph()
    for i, label in enumerate(labels):
        graph.add_node(kind=kind, position=(i * 100, 0), label=label, node_id=label)
    seen: dict[str, int] = {}
    for source, target in edges or []:
        edge_id = f"{source}->{target}"
        count = seen.get(edge_id, 0)
        seen[edge_id] = count + 1
        if count:
            edge_id = f"{edge_id}#{count}"
        graph.add_edge(source, target, edge_id=edge_id)
    return graph


def labels_of(graph: FlowGraph) -> list[str]:
    """Node labels in creation order."""
    return [node.label for node in graph.iter_nodes()]


def edge_pairs(graph: FlowGraph) -> list[tuple[str, str]]:
    """(source label, target label) pairs in edge order."""
    label = {node.id: node.label for node in graph.iter_nodes()}
    return [(label[e.source], label[e.target]) for e in graph.iter_edges()]


def reach_summary(reach: Reachability) -> dict[str, set[str]]:
    """Reachability as plain sets, convenient for equality asserts."""
    return {
        "upstream": set(reach.upstream_node_ids),
        "downstream": set(reach.downstream_node_ids),
        "upstream_edges": set(reach.upstream_edge_ids),
        "downstream_edges": set(reach.downstream_edge_ids),
    }
