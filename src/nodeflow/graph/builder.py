"""Flow Graph - Working state and mutation primitives.

FlowGraph holds the live, mutable node and edge collections and applies
add/update/delete operations to them while keeping the structural
invariants: unique ids, unique labels on committed data, and no edge
referencing a missing node.

FlowGraph never records history; callers decide which mutations are
checkpoints (see nodeflow.session).
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from nodeflow.graph.GraphNode import MULTI_LABEL_FIELDS, GraphNode, NodeKind, Position, new_node_id
from nodeflow.graph.mutations import DuplicateLabelError, InvalidNodeData, MutationEntry
from nodeflow.graph.relations import Edge, make_edge

DEFAULT_LABEL = "New Node"


def check_extra_fields(fields: Any) -> dict[str, str] | None:
    """Validate a sub-label payload, returning a plain dict copy.

    Only the multi-label sub-label names are accepted, each with a string
    value. ``None`` passes through unchanged.

    Raises:
        InvalidNodeData: If the payload is not a mapping of known names to strings.
    """
    if fields is None:
        return None
    if not isinstance(fields, Mapping):
        raise InvalidNodeData(f"Extra fields must be a mapping, got {type(fields).__name__}")
    checked = {}
    for key, value in fields.items():
        if key not in MULTI_LABEL_FIELDS:
            raise InvalidNodeData(
                f"Unknown extra field '{key}' (expected one of {', '.join(MULTI_LABEL_FIELDS)})"
            )
        if not isinstance(value, str):
            raise InvalidNodeData(f"Extra field '{key}' must be a string")
        checked[key] = value
    return checked


@dataclass
class FlowGraph:
    """Container for the working node/edge state.

    Nodes and edges are kept in insertion order, which is the default
    (creation) order shown to users.

    Attributes:
        default_label: Base name for nodes created without a label.
    """

    default_label: str = DEFAULT_LABEL

    # Internal storage (prefixed) - excluded from constructor
    _nodes: dict[str, GraphNode] = field(default_factory=dict, init=False, repr=False)
    _edges: dict[str, Edge] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_elements(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[Edge],
        default_label: str = DEFAULT_LABEL,
    ) -> FlowGraph:
        """Build a graph holding copies of the given nodes and edges."""
        graph = cls(default_label=default_label)
        graph.replace(nodes, edges)
        return graph

    # ─────────────────────────────────────────────────────────────────────────
    # Query API
    # ─────────────────────────────────────────────────────────────────────────

    def iter_nodes(self) -> Iterator[GraphNode]:
        """Iterate nodes in creation order."""
        yield from self._nodes.values()

    def iter_edges(self) -> Iterator[Edge]:
        """Iterate edges in creation order."""
        yield from self._edges.values()

    def nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    def edges(self) -> list[Edge]:
        return list(self._edges.values())

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def find_by_id(self, node_id: str) -> GraphNode | None:
        """Find node by ID.

        Args:
            node_id: The node ID to find.

        Returns:
            The matching GraphNode, or None if not found.
        """
        return self._nodes.get(node_id)

    def find_edge(self, edge_id: str) -> Edge | None:
        return self._edges.get(edge_id)

    def find_by_label(self, label: str) -> GraphNode | None:
        """Find the node carrying ``label`` (exact, case-sensitive)."""
        for node in self._nodes.values():
            if node.label == label:
                return node
        return None

    def label_conflict(self, label: str, exclude_id: str | None = None) -> GraphNode | None:
        """Return the node other than ``exclude_id`` that already uses ``label``."""
        for node in self._nodes.values():
            if node.id != exclude_id and node.label == label:
                return node
        return None

    def is_label_duplicate(self, label: str, exclude_id: str | None = None) -> bool:
        """Advisory duplicate check used while a label is being typed."""
        return self.label_conflict(label, exclude_id) is not None

    def next_default_label(self) -> str:
        """Return the first unused name of "New Node", "New Node 2", "New Node 3", ..."""
        taken = {node.label for node in self._nodes.values()}
        if self.default_label not in taken:
            return self.default_label
        suffix = 2
        while f"{self.default_label} {suffix}" in taken:
            suffix += 1
        return f"{self.default_label} {suffix}"

    def incident_edges(self, node_ids: Iterable[str]) -> list[Edge]:
        """Return edges whose source or target is one of ``node_ids``."""
        ids = set(node_ids)
        return [edge for edge in self._edges.values() if edge.touches(ids)]

    def downstream_labels(self, node_id: str) -> list[str]:
        """Labels of the targets of ``node_id``'s outgoing edges, in edge order."""
        labels = []
        for edge in self._edges.values():
            if edge.source != node_id:
                continue
            target = self._nodes.get(edge.target)
            if target is not None:
                labels.append(target.label)
        return labels

    def clone(self) -> FlowGraph:
        """Create a deep copy of this graph.

        Returns:
            A new FlowGraph whose mutations do not affect this one.
        """
        return copy.deepcopy(self)

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def replace(self, nodes: Iterable[GraphNode], edges: Iterable[Edge]) -> None:
        """Replace the whole working state with copies of ``nodes``/``edges``.

        Edges referencing nodes outside ``nodes`` are dropped.

        Raises:
            ValueError: If node or edge ids repeat.
        """
        new_nodes: dict[str, GraphNode] = {}
        for node in nodes:
            if node.id in new_nodes:
                raise ValueError(f"Duplicate node id '{node.id}'")
            new_nodes[node.id] = node.copy()
        new_edges: dict[str, Edge] = {}
        for edge in edges:
            if edge.id in new_edges:
                raise ValueError(f"Duplicate edge id '{edge.id}'")
            if edge.source in new_nodes and edge.target in new_nodes:
                new_edges[edge.id] = edge.copy()
        self._nodes = new_nodes
        self._edges = new_edges

    def add_node(
        self,
        kind: NodeKind = NodeKind.SIMPLE,
        position: Position | Any = None,
        label: str | None = None,
        extra_fields: Mapping[str, str] | None = None,
        node_id: str | None = None,
    ) -> MutationEntry:
        """Append a new node.

        Without an explicit label the node gets the first free default
        name. The node is appended at the end of the creation order.

        Args:
            kind: Node kind.
            position: Canvas position (Position, (x, y) or {"x", "y"}).
            label: Explicit label; must not collide with an existing one.
            extra_fields: Initial sub-labels (multi-label nodes only).
            node_id: Explicit id; a fresh one is generated when omitted.

        Returns:
            MutationEntry recording the operation (target_id is the new id).

        Raises:
            ValueError: If ``node_id`` already exists or ``position`` is invalid.
            DuplicateLabelError: If ``label`` is already used.
            InvalidNodeData: If ``label`` or ``extra_fields`` has the wrong shape.
        """
        node_id = node_id or new_node_id()
        if node_id in self._nodes:
            raise ValueError(f"Node '{node_id}' already exists")
        if label is None:
            label = self.next_default_label()
        elif not isinstance(label, str):
            raise InvalidNodeData("Label must be a string")
        else:
            conflict = self.label_conflict(label)
            if conflict is not None:
                raise DuplicateLabelError(label, node_id, conflict.id)
        extra_fields = check_extra_fields(extra_fields)
        position = Position.coerce(position)

        fields = kind.default_fields()
        if kind is NodeKind.MULTI_LABEL and extra_fields:
            fields.update(extra_fields)

        node = GraphNode(
            id=node_id,
            kind=kind,
            label=label,
            position=position,
            extra_fields=fields,
        )
        self._nodes[node_id] = node

        return MutationEntry(
            operation="add_node",
            target_id=node_id,
            after_state={"kind": kind.value, "label": label, "position": node.position.to_dict()},
        )

    def update_node_data(
        self,
        node_id: str,
        new_label: str,
        new_extra_fields: Mapping[str, str] | None = None,
    ) -> MutationEntry:
        """Replace a node's label and extra fields.

        The duplicate check is an exact string comparison against every
        other node. Everything is validated before the node is touched, so
        on rejection nothing is modified.

        Args:
            node_id: The node to update.
            new_label: The new label.
            new_extra_fields: New sub-labels; ignored for simple nodes,
                left untouched when None.

        Returns:
            MutationEntry recording the operation.

        Raises:
            KeyError: If node_id is not found.
            DuplicateLabelError: If another node already uses new_label.
            InvalidNodeData: If new_label is not a string or new_extra_fields
                is not a mapping of sub-label names to strings.
        """
        if node_id not in self._nodes:
            raise KeyError(f"Node '{node_id}' not found")
        if not isinstance(new_label, str):
            raise InvalidNodeData("Label must be a string")
        new_extra_fields = check_extra_fields(new_extra_fields)
        conflict = self.label_conflict(new_label, exclude_id=node_id)
        if conflict is not None:
            raise DuplicateLabelError(new_label, node_id, conflict.id)

        node = self._nodes[node_id]
        entry = MutationEntry(
            operation="update_node_data",
            target_id=node_id,
            before_state={"label": node.label, "extra_fields": dict(node.extra_fields)},
        )

        node.label = new_label
        if node.is_multi_label and new_extra_fields is not None:
            node.extra_fields = {**node.kind.default_fields(), **new_extra_fields}

        entry.after_state = {"label": node.label, "extra_fields": dict(node.extra_fields)}
        return entry

    def update_node_position(self, node_id: str, new_position: Position | Any) -> bool:
        """Move a node. Always succeeds for an existing node.

        Returns:
            True if the position actually changed.

        Raises:
            KeyError: If node_id is not found.
        """
        if node_id not in self._nodes:
            raise KeyError(f"Node '{node_id}' not found")
        node = self._nodes[node_id]
        position = Position.coerce(new_position)
        if position == node.position:
            return False
        node.position = position
        return True

    def add_edge(self, source_id: str, target_id: str, edge_id: str | None = None) -> MutationEntry:
        """Add a directed edge.

        Args:
            source_id: Node the edge leaves.
            target_id: Node the edge points to.
            edge_id: Explicit id; a fresh one is generated when omitted.

        Returns:
            MutationEntry recording the operation (target_id is the edge id).

        Raises:
            KeyError: If either endpoint is not found.
            ValueError: If edge_id already exists.
        """
        self._require_nodes(source_id, target_id)
        edge = make_edge(source_id, target_id, edge_id)
        if edge.id in self._edges:
            raise ValueError(f"Edge '{edge.id}' already exists")
        self._edges[edge.id] = edge
        return MutationEntry(
            operation="add_edge",
            target_id=edge.id,
            after_state={"source": source_id, "target": target_id},
        )

    def add_edges_from_selection(self, source_ids: Iterable[str], target_id: str) -> MutationEntry:
        """Connect every selected source to one target.

        Sources equal to ``target_id`` are skipped (no self-loops). All
        endpoints are validated before any edge is added.

        Returns:
            MutationEntry whose after_state["edge_ids"] lists the new edges.

        Raises:
            KeyError: If the target or any source is not found.
        """
        sources = [sid for sid in dict.fromkeys(source_ids) if sid != target_id]
        self._require_nodes(target_id, *sources)

        edge_ids = []
        for source_id in sources:
            edge = make_edge(source_id, target_id)
            self._edges[edge.id] = edge
            edge_ids.append(edge.id)

        return MutationEntry(
            operation="add_edges_from_selection",
            target_id=target_id,
            after_state={"sources": sources, "target": target_id, "edge_ids": edge_ids},
        )

    def delete_nodes(self, node_ids: Iterable[str]) -> MutationEntry:
        """Delete nodes and every edge incident to them.

        Unknown ids are ignored.
        """
        return self.delete_selection(node_ids, (), operation="delete_nodes")

    def delete_edges(self, edge_ids: Iterable[str]) -> MutationEntry:
        """Delete edges. Unknown ids are ignored."""
        return self.delete_selection((), edge_ids, operation="delete_edges")

    def delete_selection(
        self,
        node_ids: Iterable[str],
        edge_ids: Iterable[str],
        operation: str = "delete_selection",
    ) -> MutationEntry:
        """Delete nodes and edges as one operation.

        Node deletion cascades to every edge whose source or target is
        removed. The removal set is computed before anything changes.

        Returns:
            MutationEntry whose after_state lists the removed node and edge ids.
        """
        doomed_nodes = [nid for nid in dict.fromkeys(node_ids) if nid in self._nodes]
        doomed_node_set = set(doomed_nodes)
        doomed_edges = [eid for eid in dict.fromkeys(edge_ids) if eid in self._edges]
        for edge in self.incident_edges(doomed_node_set):
            if edge.id not in doomed_edges:
                doomed_edges.append(edge.id)

        entry = MutationEntry(
            operation=operation,
            before_state={
                "nodes": [self._nodes[nid].label for nid in doomed_nodes],
                "edge_count": len(doomed_edges),
            },
            after_state={"node_ids": doomed_nodes, "edge_ids": doomed_edges},
        )

        for eid in doomed_edges:
            del self._edges[eid]
        for nid in doomed_nodes:
            del self._nodes[nid]

        return entry

    def reconnect_edge(self, edge_id: str, new_source: str, new_target: str) -> MutationEntry:
        """Replace both endpoints of an edge, keeping its id.

        Raises:
            KeyError: If the edge or either new endpoint is not found.
        """
        if edge_id not in self._edges:
            raise KeyError(f"Edge '{edge_id}' not found")
        self._require_nodes(new_source, new_target)

        edge = self._edges[edge_id]
        entry = MutationEntry(
            operation="reconnect_edge",
            target_id=edge_id,
            before_state={"source": edge.source, "target": edge.target},
            after_state={"source": new_source, "target": new_target},
        )
        edge.source = new_source
        edge.target = new_target
        return entry

    def _require_nodes(self, *node_ids: str) -> None:
        for node_id in node_ids:
            if node_id not in self._nodes:
                raise KeyError(f"Node '{node_id}' not found")
