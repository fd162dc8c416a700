"""GraphNode - Node representation for the flow graph.

This module provides the core node data structures:
- NodeKind: Enum of node kinds (simple or multi-label)
- Position: Canvas coordinates of a node
- GraphNode: A labelled node with optional extra fields
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

# Extra fields carried by multi-label nodes, in display order.
MULTI_LABEL_FIELDS = ("sublabel1", "sublabel2")


class NodeKind(Enum):
    """Kinds of nodes in the flow graph.

    The value is the ``type`` string used by the exchange format.
    """

    SIMPLE = "defaultNode"
    MULTI_LABEL = "multiLabelNode"

    @classmethod
    def from_type(cls, type_name: str | None) -> NodeKind:
        """Resolve an exchange-format type string (``None`` means simple).

        Raises:
            ValueError: If the type string is not a known node kind.
        """
        if type_name is None:
            return cls.SIMPLE
        for kind in cls:
            if kind.value == type_name or kind.name == str(type_name).upper():
                return kind
        raise ValueError(f"Unknown node type '{type_name}'")

    def default_fields(self) -> dict[str, str]:
        """Return the extra fields a freshly created node of this kind carries."""
        if self is NodeKind.MULTI_LABEL:
            return {name: "" for name in MULTI_LABEL_FIELDS}
        return {}


@dataclass(frozen=True)
class Position:
    """Canvas position of a node."""

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> Position:
        """Build a Position from a Position, an (x, y) pair or an {"x", "y"} mapping.

        Raises:
            ValueError: If the value has no two coordinates, or a coordinate
                is not a finite number.
            TypeError: If a coordinate cannot be converted to a float.
        """
        if isinstance(value, Position):
            return value
        if value is None:
            return cls()
        if isinstance(value, Mapping):
            x, y = value.get("x", 0.0), value.get("y", 0.0)
        elif isinstance(value, (str, bytes)):
            raise ValueError(f"Invalid position {value!r}")
        else:
            x, y = value
        if isinstance(x, bool) or isinstance(y, bool):
            raise ValueError("Position coordinates must be numbers")
        try:
            position = cls(float(x), float(y))
        except OverflowError as e:
            raise ValueError(f"Position coordinates out of range: {e}") from e
        if not (math.isfinite(position.x) and math.isfinite(position.y)):
            raise ValueError(f"Position coordinates must be finite, got {position}")
        return position

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


def new_node_id() -> str:
    """Generate a fresh, globally unique node id."""
    return uuid4().hex


@dataclass
class GraphNode:
    """A node in the flow graph.

    The ``id`` and ``kind`` of a node never change once it is created.
    ``label``, ``position`` and ``extra_fields`` are mutated in place by
    the owning FlowGraph.

    Attributes:
        id: Unique identifier for this node.
        kind: Simple or multi-label node.
        label: Human-readable display label, unique at every checkpoint.
        position: Canvas coordinates.
        extra_fields: Sub-labels, used only by multi-label nodes.
    """

    id: str
    kind: NodeKind = NodeKind.SIMPLE
    label: str = ""
    position: Position = field(default_factory=Position)
    extra_fields: dict[str, str] = field(default_factory=dict)

    def get_field(self, key: str, default: str | None = None) -> str | None:
        """Get an extra field."""
        return self.extra_fields.get(key, default)

    def set_field(self, key: str, value: str) -> None:
        """Set an extra field."""
        self.extra_fields[key] = value

    @property
    def is_multi_label(self) -> bool:
        return self.kind is NodeKind.MULTI_LABEL

    def copy(self) -> GraphNode:
        """Return an independent copy of this node."""
        return GraphNode(
            id=self.id,
            kind=self.kind,
            label=self.label,
            position=self.position,
            extra_fields=dict(self.extra_fields),
        )

    def __str__(self) -> str:
        return f"{self.label or '<unlabelled>'} [{self.id[:8]}]"
