"""Graph module - Core graph data structures.

Exports:
- NodeKind: Enum of node kinds
- Position: Canvas coordinates
- GraphNode: Labelled node
- Edge: Directed edge between nodes
- FlowGraph: Working state with mutation primitives
- GraphIndex / build_index: Adjacency view
- Reachability / compute_reachability: Upstream/downstream traversal
- GraphSnapshot / History: Undo/redo stack
- SelectionState: Selected and highlighted ids
- Error types: GraphError, DuplicateLabelError, MalformedImportDocument,
  InvalidNodeData
- UnresolvedReference, MutationEntry: Operation records

Note: EditorSession (nodeflow.session) ties these together.
"""

from nodeflow.graph.builder import FlowGraph
from nodeflow.graph.GraphNode import GraphNode, NodeKind, Position
from nodeflow.graph.history import GraphSnapshot, History
from nodeflow.graph.index import Adjacency, GraphIndex, build_index
from nodeflow.graph.mutations import (
    DuplicateLabelError,
    GraphError,
    InvalidNodeData,
    MalformedImportDocument,
    MutationEntry,
    UnresolvedReference,
)
from nodeflow.graph.reachability import Reachability, compute_reachability
from nodeflow.graph.relations import Edge
from nodeflow.graph.selection import SelectionState, compute_highlights

__all__ = [
    "NodeKind",
    "Position",
    "GraphNode",
    "Edge",
    "FlowGraph",
    "Adjacency",
    "GraphIndex",
    "build_index",
    "Reachability",
    "compute_reachability",
    "GraphSnapshot",
    "History",
    "SelectionState",
    "compute_highlights",
    "GraphError",
    "DuplicateLabelError",
    "InvalidNodeData",
    "MalformedImportDocument",
    "UnresolvedReference",
    "MutationEntry",
]
