"""Selection - Selected and highlighted element ids.

Selection state is derived and ephemeral: it is recomputed on every
selection change and never persisted or checkpointed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from nodeflow.graph.GraphNode import GraphNode
from nodeflow.graph.index import build_index
from nodeflow.graph.reachability import compute_reachability
from nodeflow.graph.relations import Edge


@dataclass
class SelectionState:
    """Current selection, highlight sets and the node being edited."""

    selected_node_ids: set[str] = field(default_factory=set)
    selected_edge_ids: set[str] = field(default_factory=set)
    highlighted_node_ids: set[str] = field(default_factory=set)
    highlighted_edge_ids: set[str] = field(default_factory=set)
    editing_node_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.selected_node_ids and not self.selected_edge_ids

    def clear(self) -> None:
        self.selected_node_ids = set()
        self.selected_edge_ids = set()
        self.highlighted_node_ids = set()
        self.highlighted_edge_ids = set()

    def prune(self, node_ids: set[str], edge_ids: set[str]) -> None:
        """Forget selected ids that no longer exist."""
        self.selected_node_ids &= node_ids
        self.selected_edge_ids &= edge_ids
        if self.editing_node_id is not None and self.editing_node_id not in node_ids:
            self.editing_node_id = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected_node_ids": sorted(self.selected_node_ids),
            "selected_edge_ids": sorted(self.selected_edge_ids),
            "highlighted_node_ids": sorted(self.highlighted_node_ids),
            "highlighted_edge_ids": sorted(self.highlighted_edge_ids),
            "editing_node_id": self.editing_node_id,
        }


def compute_highlights(
    nodes: Iterable[GraphNode],
    edges: Iterable[Edge],
    selected_node_ids: Iterable[str],
    selected_edge_ids: Iterable[str],
) -> tuple[set[str], set[str]]:
    """Compute highlight sets for a selection.

    - each selected node highlights itself, its ancestors and its
      descendants, plus the edges on those paths
    - each selected edge highlights its two endpoints
    - an empty selection highlights nothing

    Returns:
        (highlighted node ids, highlighted edge ids)
    """
    node_list = list(nodes)
    edge_list = list(edges)
    highlighted_nodes: set[str] = set()
    highlighted_edges: set[str] = set()

    seeds = list(selected_node_ids)
    if seeds:
        index = build_index(node_list, edge_list)
        for seed in seeds:
            reach = compute_reachability(seed, node_list, edge_list, index=index)
            highlighted_nodes |= reach.node_ids(include_seed=True)
            highlighted_edges |= reach.edge_ids()

    wanted_edges = set(selected_edge_ids)
    for edge in edge_list:
        if edge.id in wanted_edges:
            highlighted_nodes.add(edge.source)
            highlighted_nodes.add(edge.target)

    return highlighted_nodes, highlighted_edges
