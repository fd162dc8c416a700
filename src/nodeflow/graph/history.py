"""History - Linear undo/redo stack of graph snapshots.

The snapshot at the cursor is always the authoritative committed state.
New snapshots enter only through ``checkpoint()``, which discards any
redo branch first. The initial empty snapshot is the undo floor.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from nodeflow.graph.GraphNode import GraphNode
from nodeflow.graph.mutations import MutationEntry
from nodeflow.graph.relations import Edge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable point-in-time copy of the node and edge collections.

    Nodes and edges are copied on capture and again on restore, so no
    caller ever holds a reference into a stored snapshot.

    Attributes:
        nodes: Node copies in creation order.
        edges: Edge copies in creation order.
        entry: The mutation that produced this snapshot (None for the floor).
    """

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[Edge, ...] = ()
    entry: MutationEntry | None = None

    @classmethod
    def capture(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[Edge],
        entry: MutationEntry | None = None,
    ) -> GraphSnapshot:
        return cls(
            nodes=tuple(node.copy() for node in nodes),
            edges=tuple(edge.copy() for edge in edges),
            entry=entry,
        )

    def restore_nodes(self) -> list[GraphNode]:
        return [node.copy() for node in self.nodes]

    def restore_edges(self) -> list[Edge]:
        return [edge.copy() for edge in self.edges]

    def find_node(self, node_id: str) -> GraphNode | None:
        """Return a copy of the stored node with ``node_id``, if any."""
        for node in self.nodes:
            if node.id == node_id:
                return node.copy()
        return None

    def labels(self) -> list[str]:
        return [node.label for node in self.nodes]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


class History:
    """Undo/redo cursor over an ordered list of snapshots.

    Invariant: the snapshot list is never empty and
    ``0 <= cursor < len(history)``.

    Example:
        >>> history = History()
        >>> history.checkpoint(nodes, edges)
        >>> history.undo()  # back to the empty graph
        >>> history.redo()
    """

    def __init__(self) -> None:
        """Start with a single empty snapshot at cursor 0."""
        self._snapshots: list[GraphSnapshot] = [GraphSnapshot()]
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> GraphSnapshot:
        """The authoritative committed snapshot."""
        return self._snapshots[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[GraphSnapshot]:
        """Iterate snapshots oldest first, including any redo branch."""
        return iter(list(self._snapshots))

    def checkpoint(
        self,
        nodes: Iterable[GraphNode],
        edges: Iterable[Edge],
        entry: MutationEntry | None = None,
    ) -> GraphSnapshot:
        """Commit a new snapshot after the cursor.

        Snapshots after the cursor (the redo branch) are discarded first.

        Args:
            nodes: Current node collection (copied).
            edges: Current edge collection (copied).
            entry: Description of the operation being committed.

        Returns:
            The new current snapshot.
        """
        dropped = len(self._snapshots) - self._cursor - 1
        del self._snapshots[self._cursor + 1 :]
        snapshot = GraphSnapshot.capture(nodes, edges, entry)
        self._snapshots.append(snapshot)
        self._cursor = len(self._snapshots) - 1
        logger.debug(
            "checkpoint %d: %s (%d nodes, %d edges, %d redo dropped)",
            self._cursor,
            entry.operation if entry else "-",
            len(snapshot.nodes),
            len(snapshot.edges),
            dropped,
        )
        return snapshot

    def undo(self) -> GraphSnapshot | None:
        """Step the cursor back.

        Returns:
            The new current snapshot, or None at the earliest snapshot.
        """
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self.current

    def redo(self) -> GraphSnapshot | None:
        """Step the cursor forward.

        Returns:
            The new current snapshot, or None at the latest snapshot.
        """
        if not self.can_redo:
            return None
        self._cursor += 1
        return self.current

    def entries(self) -> list[MutationEntry]:
        """Mutation entries of the committed snapshots up to the cursor."""
        return [s.entry for s in self._snapshots[1 : self._cursor + 1] if s.entry is not None]

    def reset(self) -> None:
        """Drop every snapshot and return to the single empty floor."""
        self._snapshots = [GraphSnapshot()]
        self._cursor = 0


__all__ = ["GraphSnapshot", "History"]
