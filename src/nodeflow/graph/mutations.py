"""Mutation types for FlowGraph operations.

This module provides the error taxonomy raised by graph mutations and
the records that describe what a mutation did:

- GraphError and its subclasses for rejected operations
- UnresolvedReference for import references that could not be resolved
- MutationEntry describing one logical operation (attached to checkpoints)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4


class GraphError(Exception):
    """Base class for rejected graph operations."""


class DuplicateLabelError(GraphError, ValueError):
    """A label commit collides with another node's label.

    Attributes:
        label: The rejected label.
        node_id: The node being edited.
        conflicting_id: The node that already carries the label.
    """

    def __init__(self, label: str, node_id: str | None, conflicting_id: str) -> None:
        self.label = label
        self.node_id = node_id
        self.conflicting_id = conflicting_id
        super().__init__(f"Duplicate label '{label}' (already used by node {conflicting_id})")


class MalformedImportDocument(GraphError, ValueError):
    """An exchange document is structurally invalid; nothing was imported."""


class InvalidNodeData(GraphError, ValueError):
    """A label or extra-field payload has the wrong shape; nothing was changed."""


@dataclass(frozen=True)
class UnresolvedReference:
    """A ``downstream`` label in an imported document with no matching node.

    The edge it describes is skipped during import.

    Attributes:
        source_label: Label of the record holding the reference.
        target_label: Label that was referenced but doesn't exist.
    """

    source_label: str
    target_label: str

    def __str__(self) -> str:
        return f"{self.source_label} --> {self.target_label} (missing)"


@dataclass
class MutationEntry:
    """Single mutation operation record.

    Returned by every FlowGraph mutation and attached to the history
    checkpoint it produces.

    Attributes:
        operation: Operation type (e.g., "add_node", "delete_selection").
        target_id: Primary target of the mutation (empty for bulk operations).
        before_state: Relevant state before the mutation.
        after_state: Relevant state after the mutation.
        id: Unique mutation ID (UUID4).
        timestamp: When the mutation occurred.
    """

    operation: str
    target_id: str = ""
    before_state: dict[str, Any] = field(default_factory=dict)
    after_state: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "target_id": self.target_id,
            "before_state": self.before_state,
            "after_state": self.after_state,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.target_id:
            return f"[{self.id[:8]}] {self.operation}({self.target_id})"
        return f"[{self.id[:8]}] {self.operation}"


__all__ = [
    "GraphError",
    "DuplicateLabelError",
    "MalformedImportDocument",
    "InvalidNodeData",
    "UnresolvedReference",
    "MutationEntry",
]
