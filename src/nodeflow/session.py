"""Editor Session - The single owner of working state, history and selection.

EditorSession is the boundary the UI collaborator talks to. It applies
user intents to the working FlowGraph, decides which of them are
checkpoints, recomputes highlight sets, and reports validation problems
as MutationResult values instead of raising them.

Checkpoint policy:
- creation, confirmed label edits, deletions, reconnects and imports
  checkpoint once per call
- node moves never checkpoint; ``end_drag()`` commits the whole gesture once
- live label previews never checkpoint; ``commit_edit()`` does
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from nodeflow.config import DEFAULT_CONFIG
from nodeflow.graph.builder import DEFAULT_LABEL, FlowGraph
from nodeflow.graph.GraphNode import GraphNode, NodeKind, Position
from nodeflow.graph.history import GraphSnapshot, History
from nodeflow.graph.mutations import (
    GraphError,
    MalformedImportDocument,
    MutationEntry,
)
from nodeflow.graph.reachability import Reachability, compute_reachability
from nodeflow.graph.relations import Edge
from nodeflow.graph.selection import SelectionState, compute_highlights
from nodeflow.graph.serialize import export_json, import_flow_data, serialize_graph

logger = logging.getLogger(__name__)

SORT_METHODS = ("default", "alphabetical")


@dataclass
class MutationResult:
    """Outcome of a session operation.

    Attributes:
        success: False when the operation was rejected (state unchanged).
        value: Operation-specific payload (new ids, moved flag, ...).
        error: The rejection reason when success is False.
        message: Human-readable summary.
        mutation: The committed mutation, when a checkpoint was recorded.
    """

    success: bool
    value: Any = None
    error: Exception | None = None
    message: str = ""
    mutation: MutationEntry | None = None

    @classmethod
    def ok(
        cls, value: Any = None, message: str = "", mutation: MutationEntry | None = None
    ) -> MutationResult:
        return cls(success=True, value=value, message=message, mutation=mutation)

    @classmethod
    def failed(cls, error: Exception) -> MutationResult:
        # KeyError str() adds quotes; use the raw message.
        message = error.args[0] if isinstance(error, KeyError) and error.args else str(error)
        return cls(success=False, error=error, message=str(message))

    @property
    def error_type(self) -> str | None:
        return type(self.error).__name__ if self.error is not None else None

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.message, "error_type": self.error_type}
        result: dict[str, Any] = {"success": True, "value": _jsonable(self.value)}
        if self.message:
            result["message"] = self.message
        if self.mutation is not None:
            result["mutation"] = self.mutation.to_dict()
        return result


def _jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "__dataclass_fields__"):
        return {name: _jsonable(getattr(value, name)) for name in value.__dataclass_fields__}
    if isinstance(value, Path):
        return str(value)
    return value


class EditorSession:
    """Working graph, undo history and selection for one editor.

    Args:
        config: Effective configuration (see nodeflow.config); defaults
            are used when omitted.
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config if config is not None else copy.deepcopy(DEFAULT_CONFIG)
        editor_cfg = self.config.get("editor", {})
        self.default_kind = NodeKind.from_type(editor_cfg.get("default_kind"))
        self.graph = FlowGraph(default_label=editor_cfg.get("default_label", DEFAULT_LABEL))
        self.history = History()
        self.selection = SelectionState()
        self._moved_ids: list[str] = []
        # Node data as it was when the open label edit began.
        self._edit_origin: GraphNode | None = None

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def nodes(self) -> list[GraphNode]:
        return self.graph.nodes()

    @property
    def edges(self) -> list[Edge]:
        return self.graph.edges()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def has_pending_gesture(self) -> bool:
        """True while moved positions wait for ``end_drag()``."""
        return bool(self._moved_ids)

    def find_node(self, node_id: str) -> GraphNode | None:
        return self.graph.find_by_id(node_id)

    def find_node_by_label(self, label: str) -> GraphNode | None:
        return self.graph.find_by_label(label)

    def find_edge(self, edge_id: str) -> Edge | None:
        return self.graph.find_edge(edge_id)

    def is_label_duplicate(self, label: str, node_id: str | None = None) -> bool:
        """Advisory check for live typing; never mutates."""
        return self.graph.is_label_duplicate(label, exclude_id=node_id)

    def reachability(self, node_id: str) -> Reachability:
        return compute_reachability(node_id, self.graph.iter_nodes(), self.graph.iter_edges())

    def list_nodes(self, query: str = "", sort: str = "default") -> list[GraphNode]:
        """Filter nodes by a case-insensitive label substring and sort them.

        Args:
            query: Substring to look for; empty matches every node.
            sort: "default" (creation order) or "alphabetical".

        Raises:
            ValueError: If ``sort`` is not a known method.
        """
        if sort not in SORT_METHODS:
            raise ValueError(f"Unknown sort method '{sort}' (expected one of {SORT_METHODS})")
        needle = query.casefold()
        matches = [node for node in self.graph.iter_nodes() if needle in node.label.casefold()]
        if sort == "alphabetical":
            matches.sort(key=lambda node: node.label.casefold())
        return matches

    def snapshot(self) -> GraphSnapshot:
        """Capture the working state (not recorded in history)."""
        return GraphSnapshot.capture(self.graph.iter_nodes(), self.graph.iter_edges())

    def to_dict(self) -> dict[str, Any]:
        """Full state for rendering collaborators."""
        data = serialize_graph(self.graph)
        data["selection"] = self.selection.to_dict()
        data["history"] = {
            "cursor": self.history.cursor,
            "length": len(self.history),
            "can_undo": self.history.can_undo,
            "can_redo": self.history.can_redo,
            "pending_gesture": self.has_pending_gesture,
        }
        return data

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _commit(self, entry: MutationEntry, message: str = "", value: Any = None) -> MutationResult:
        # An unconfirmed label draft never reaches a checkpoint.
        self.cancel_edit()
        self.history.checkpoint(self.graph.iter_nodes(), self.graph.iter_edges(), entry)
        self._moved_ids = []
        self._refresh_selection()
        return MutationResult.ok(value=value, message=message, mutation=entry)

    def _restore(self, snapshot: GraphSnapshot) -> None:
        self.graph.replace(snapshot.nodes, snapshot.edges)
        self._moved_ids = []
        self.selection.editing_node_id = None
        self._edit_origin = None
        self._refresh_selection()

    def _refresh_selection(self) -> None:
        node_ids = {node.id for node in self.graph.iter_nodes()}
        edge_ids = {edge.id for edge in self.graph.iter_edges()}
        self.selection.prune(node_ids, edge_ids)
        if self.selection.editing_node_id is None:
            self._edit_origin = None
        nodes, edges = compute_highlights(
            self.graph.iter_nodes(),
            self.graph.iter_edges(),
            self.selection.selected_node_ids,
            self.selection.selected_edge_ids,
        )
        self.selection.highlighted_node_ids = nodes
        self.selection.highlighted_edge_ids = edges

    # ─────────────────────────────────────────────────────────────────────────
    # Node operations
    # ─────────────────────────────────────────────────────────────────────────

    def add_node(self, kind: NodeKind | str | None = None, position: Any = None) -> MutationResult:
        """Create a node with the next default label and checkpoint.

        Returns:
            Result whose value is the new node id.
        """
        self.cancel_edit()
        try:
            if kind is None:
                kind = self.default_kind
            elif not isinstance(kind, NodeKind):
                kind = NodeKind.from_type(kind)
            entry = self.graph.add_node(kind=kind, position=position)
        except (GraphError, ValueError, TypeError) as e:
            return MutationResult.failed(e)
        label = entry.after_state["label"]
        return self._commit(entry, f"Added node {label}", value=entry.target_id)

    def update_node_data(
        self,
        node_id: str,
        label: str,
        extra_fields: Mapping[str, str] | None = None,
    ) -> MutationResult:
        """Commit a label (and sub-label) change.

        A label already used by another node, or a malformed payload, is
        rejected: nothing changes and no checkpoint is recorded. Updating a
        node other than the one being edited discards that edit first.
        """
        if self.selection.editing_node_id not in (None, node_id):
            self.cancel_edit()
        try:
            entry = self.graph.update_node_data(node_id, label, extra_fields)
        except GraphError as e:
            logger.info("Rejected update of node %s: %s", node_id, e)
            return MutationResult.failed(e)
        except KeyError as e:
            return MutationResult.failed(e)
        if self.selection.editing_node_id == node_id:
            self.selection.editing_node_id = None
            self._edit_origin = None
        return self._commit(entry, f"Renamed node to {label}", value=node_id)

    def move_node(self, node_id: str, position: Any) -> MutationResult:
        """Apply a drag step to the working state without checkpointing."""
        return self.move_nodes({node_id: position})

    def move_nodes(self, positions: Mapping[str, Any]) -> MutationResult:
        """Apply a drag step for several nodes without checkpointing.

        Returns:
            Result whose value is True when any position changed.
        """
        missing = [nid for nid in positions if not self.graph.has_node(nid)]
        if missing:
            return MutationResult.failed(KeyError(f"Node '{missing[0]}' not found"))
        try:
            coerced = {nid: Position.coerce(pos) for nid, pos in positions.items()}
        except (TypeError, ValueError) as e:
            return MutationResult.failed(e)
        changed = [nid for nid, pos in coerced.items() if self.graph.update_node_position(nid, pos)]
        for nid in changed:
            if nid not in self._moved_ids:
                self._moved_ids.append(nid)
        return MutationResult.ok(value=bool(changed))

    def end_drag(self) -> MutationResult:
        """Finish a drag gesture: one checkpoint if anything moved.

        Returns:
            Result whose value is True when a checkpoint was recorded.
        """
        if not self._moved_ids:
            return MutationResult.ok(value=False, message="Nothing moved")
        entry = MutationEntry(
            operation="move_nodes",
            after_state={
                "positions": {
                    nid: self.graph.find_by_id(nid).position.to_dict()
                    for nid in self._moved_ids
                    if self.graph.has_node(nid)
                }
            },
        )
        return self._commit(entry, f"Moved {len(self._moved_ids)} node(s)", value=True)

    # ─────────────────────────────────────────────────────────────────────────
    # Edge operations
    # ─────────────────────────────────────────────────────────────────────────

    def add_edge(self, source_id: str, target_id: str) -> MutationResult:
        """Connect two nodes and checkpoint.

        Returns:
            Result whose value is the new edge id.
        """
        try:
            entry = self.graph.add_edge(source_id, target_id)
        except (KeyError, ValueError) as e:
            return MutationResult.failed(e)
        return self._commit(entry, f"Added edge {source_id} --> {target_id}", value=entry.target_id)

    def add_edges_from_selection(self, source_ids: Iterable[str], target_id: str) -> MutationResult:
        """Connect every source to ``target_id`` (self-loops skipped), one checkpoint.

        Returns:
            Result whose value is the list of new edge ids.
        """
        try:
            entry = self.graph.add_edges_from_selection(source_ids, target_id)
        except KeyError as e:
            return MutationResult.failed(e)
        edge_ids = entry.after_state["edge_ids"]
        if not edge_ids:
            return MutationResult.ok(value=[], message="No edges to add")
        return self._commit(entry, f"Added {len(edge_ids)} edge(s)", value=edge_ids)

    def connect(self, source_id: str, target_id: str) -> MutationResult:
        """Handle a connect gesture.

        With more than one node selected every selected node is connected
        to the target; otherwise a single edge is added. The value is
        always a list of new edge ids.
        """
        selected = [n.id for n in self.graph.iter_nodes() if n.id in self.selection.selected_node_ids]
        if len(selected) > 1:
            return self.add_edges_from_selection(selected, target_id)
        result = self.add_edge(source_id, target_id)
        if result.success:
            result.value = [result.value]
        return result

    def reconnect_edge(self, edge_id: str, new_source: str, new_target: str) -> MutationResult:
        """Move an edge to new endpoints, keeping its id, and checkpoint."""
        try:
            entry = self.graph.reconnect_edge(edge_id, new_source, new_target)
        except KeyError as e:
            return MutationResult.failed(e)
        return self._commit(entry, f"Reconnected edge {edge_id}", value=edge_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Deletion
    # ─────────────────────────────────────────────────────────────────────────

    def _commit_deletion(self, entry: MutationEntry) -> MutationResult:
        removed_nodes = entry.after_state["node_ids"]
        removed_edges = entry.after_state["edge_ids"]
        value = {"node_ids": removed_nodes, "edge_ids": removed_edges}
        if not removed_nodes and not removed_edges:
            return MutationResult.ok(value=value, message="Nothing to delete")
        message = f"Deleted {len(removed_nodes)} node(s) and {len(removed_edges)} edge(s)"
        return self._commit(entry, message, value=value)

    def delete_nodes(self, node_ids: Iterable[str]) -> MutationResult:
        """Delete nodes and their incident edges as one checkpoint."""
        return self._commit_deletion(self.graph.delete_nodes(node_ids))

    def delete_edges(self, edge_ids: Iterable[str]) -> MutationResult:
        """Delete edges as one checkpoint."""
        return self._commit_deletion(self.graph.delete_edges(edge_ids))

    def delete_selection(
        self,
        node_ids: Iterable[str] | None = None,
        edge_ids: Iterable[str] | None = None,
    ) -> MutationResult:
        """Delete nodes and edges together as one checkpoint.

        Without arguments the current selection is deleted and cleared.
        Refused while a label edit is open.
        """
        if node_ids is None and edge_ids is None:
            if self.selection.editing_node_id is not None:
                return MutationResult.ok(
                    value={"node_ids": [], "edge_ids": []}, message="Editing in progress"
                )
            node_ids = sorted(self.selection.selected_node_ids)
            edge_ids = sorted(self.selection.selected_edge_ids)
            self.selection.clear()
        return self._commit_deletion(self.graph.delete_selection(node_ids or (), edge_ids or ()))

    # ─────────────────────────────────────────────────────────────────────────
    # History
    # ─────────────────────────────────────────────────────────────────────────

    def undo(self) -> MutationResult:
        """Step back one checkpoint; a no-op at the empty floor.

        Uncommitted drag positions and previews are discarded.

        Returns:
            Result whose value is True when the cursor moved.
        """
        snapshot = self.history.undo()
        if snapshot is None:
            return MutationResult.ok(value=False, message="Nothing to undo")
        self._restore(snapshot)
        return MutationResult.ok(value=True, message=f"Undo to checkpoint {self.history.cursor}")

    def redo(self) -> MutationResult:
        """Step forward one checkpoint; a no-op at the latest one."""
        snapshot = self.history.redo()
        if snapshot is None:
            return MutationResult.ok(value=False, message="Nothing to redo")
        self._restore(snapshot)
        return MutationResult.ok(value=True, message=f"Redo to checkpoint {self.history.cursor}")

    # ─────────────────────────────────────────────────────────────────────────
    # Selection and highlighting
    # ─────────────────────────────────────────────────────────────────────────

    def select_node(self, node_id: str) -> MutationResult:
        """Select one node: highlights it plus its ancestors and descendants."""
        if not self.graph.has_node(node_id):
            return MutationResult.failed(KeyError(f"Node '{node_id}' not found"))
        return self.set_selection([node_id], [])

    def select_edge(self, edge_id: str) -> MutationResult:
        """Select one edge: highlights its two endpoints."""
        if not self.graph.has_edge(edge_id):
            return MutationResult.failed(KeyError(f"Edge '{edge_id}' not found"))
        return self.set_selection([], [edge_id])

    def set_selection(self, node_ids: Iterable[str], edge_ids: Iterable[str]) -> MutationResult:
        """Replace the selection; unknown ids are dropped.

        An empty selection clears highlights and closes any open edit.
        """
        self.selection.selected_node_ids = {n for n in node_ids if self.graph.has_node(n)}
        self.selection.selected_edge_ids = {e for e in edge_ids if self.graph.has_edge(e)}
        if self.selection.is_empty:
            self.cancel_edit()
        self._refresh_selection()
        return MutationResult.ok(value=self.selection.to_dict())

    def clear_selection(self) -> MutationResult:
        return self.set_selection([], [])

    # ─────────────────────────────────────────────────────────────────────────
    # Label editing
    # ─────────────────────────────────────────────────────────────────────────

    def begin_edit(self, node_id: str) -> MutationResult:
        """Open a label edit on a node."""
        if not self.graph.has_node(node_id):
            return MutationResult.failed(KeyError(f"Node '{node_id}' not found"))
        if self.selection.editing_node_id == node_id:
            return MutationResult.ok(value=node_id)
        self.cancel_edit()
        self.selection.editing_node_id = node_id
        self._edit_origin = self.graph.find_by_id(node_id).copy()
        return MutationResult.ok(value=node_id)

    def preview_label(
        self, label: str, extra_fields: Mapping[str, str] | None = None
    ) -> MutationResult:
        """Show typed text on the edited node without checkpointing.

        A duplicate label or malformed payload is reported and not applied;
        the edit stays open.
        """
        node_id = self.selection.editing_node_id
        if node_id is None:
            return MutationResult.failed(GraphError("No label edit in progress"))
        try:
            self.graph.update_node_data(node_id, label, extra_fields)
        except GraphError as e:
            return MutationResult.failed(e)
        return MutationResult.ok(value=node_id)

    def commit_edit(
        self, label: str | None = None, extra_fields: Mapping[str, str] | None = None
    ) -> MutationResult:
        """Confirm the open edit; on a duplicate label the edit stays open."""
        node_id = self.selection.editing_node_id
        if node_id is None:
            return MutationResult.failed(GraphError("No label edit in progress"))
        node = self.graph.find_by_id(node_id)
        if label is None:
            label = node.label
        return self.update_node_data(node_id, label, extra_fields)

    def cancel_edit(self) -> MutationResult:
        """Close the open edit, restoring the node's data from before the edit began."""
        node_id = self.selection.editing_node_id
        if node_id is None:
            return MutationResult.ok(value=None)
        origin = self._edit_origin
        self.selection.editing_node_id = None
        self._edit_origin = None
        node = self.graph.find_by_id(node_id)
        if origin is not None and node is not None:
            node.label = origin.label
            node.extra_fields = dict(origin.extra_fields)
        return MutationResult.ok(value=node_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Import / export
    # ─────────────────────────────────────────────────────────────────────────

    def export_document(self) -> str:
        """Exchange document for the working state as pretty-printed JSON."""
        indent = self.config.get("export", {}).get("indent", 2)
        return export_json(self.graph.iter_nodes(), self.graph.iter_edges(), indent=indent)

    def export_to_file(self, path: Path | str | None = None) -> Path:
        """Write the exchange document; defaults to the configured file name."""
        if path is None:
            path = self.config.get("export", {}).get("filename", "flowchart.json")
        path = Path(path)
        path.write_text(self.export_document() + "\n", encoding="utf-8")
        return path

    def import_document(self, data: Any) -> MutationResult:
        """Replace the whole working state with an exchange document.

        The document is validated completely first; a malformed one
        leaves state untouched. The import itself is one checkpoint, so
        it can be undone. Callers confirm with the user beforehand when
        the graph is not empty.

        Returns:
            Result whose value is the list of skipped UnresolvedReference.
        """
        try:
            imported = import_flow_data(data)
        except MalformedImportDocument as e:
            logger.warning("Import rejected: %s", e)
            return MutationResult.failed(e)

        self.graph.replace(imported.nodes, imported.edges)
        self.selection.clear()
        self.selection.editing_node_id = None
        entry = MutationEntry(
            operation="import",
            after_state={
                "node_count": len(imported.nodes),
                "edge_count": len(imported.edges),
                "unresolved": [str(ref) for ref in imported.unresolved],
            },
        )
        message = f"Imported {len(imported.nodes)} node(s) and {len(imported.edges)} edge(s)"
        return self._commit(entry, message, value=imported.unresolved)

    def import_file(self, path: Path | str) -> MutationResult:
        """Read and import an exchange document from disk."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            return MutationResult.failed(MalformedImportDocument(f"Cannot read {path}: {e}"))
        return self.import_document(text)
