"""
nodeflow - Graph state engine for node-and-edge diagram editors

nodeflow holds the nodes and edges of a diagram, applies user edits to
them with label-uniqueness and dangling-edge guarantees, keeps an
undo/redo history of checkpoints, and computes the upstream/downstream
neighbourhood of a selected element for highlighting.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("nodeflow")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from nodeflow.graph import (
    DuplicateLabelError,
    Edge,
    FlowGraph,
    GraphNode,
    MalformedImportDocument,
    NodeKind,
    Position,
    compute_reachability,
)
from nodeflow.session import EditorSession, MutationResult

__all__ = [
    "__version__",
    "EditorSession",
    "MutationResult",
    "FlowGraph",
    "GraphNode",
    "Edge",
    "NodeKind",
    "Position",
    "compute_reachability",
    "DuplicateLabelError",
    "MalformedImportDocument",
]
