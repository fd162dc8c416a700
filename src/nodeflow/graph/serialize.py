"""Graph Serialization - Exchange documents and JSON views.

The exchange document is a JSON array with one record per node::

    [{"type": "defaultNode" | "multiLabelNode",
      "label": "...",
      "position": {"x": 0, "y": 0},
      "downstream": ["label of target", ...],
      "sublabel1": "...", "sublabel2": "..."}]

Edges are carried by label, so ids are regenerated on import. Import is
all-or-nothing: the whole document is validated before anything is built.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nodeflow.graph.GraphNode import MULTI_LABEL_FIELDS, GraphNode, NodeKind, Position, new_node_id
from nodeflow.graph.mutations import MalformedImportDocument, UnresolvedReference
from nodeflow.graph.relations import Edge, make_edge

if TYPE_CHECKING:
    from nodeflow.graph.builder import FlowGraph

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Nodes and edges built from an exchange document.

    Attributes:
        nodes: New nodes in document order.
        edges: New edges in document order.
        unresolved: Downstream references that were skipped.
    """

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    unresolved: list[UnresolvedReference] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Export
# ─────────────────────────────────────────────────────────────────────────────


def export_node(node: GraphNode, downstream: list[str]) -> dict[str, Any]:
    """Project one node to its exchange record."""
    record: dict[str, Any] = {
        "type": node.kind.value,
        "label": node.label,
        "position": node.position.to_dict(),
        "downstream": downstream,
    }
    if node.is_multi_label:
        for name in MULTI_LABEL_FIELDS:
            record[name] = node.get_field(name) or ""
    return record


def export_flow_data(nodes: Iterable[GraphNode], edges: Iterable[Edge]) -> list[dict[str, Any]]:
    """Build exchange records for the given collections.

    Each record lists the labels its outgoing edges point to, in edge
    order. Edges whose target is missing are skipped.
    """
    node_list = list(nodes)
    edge_list = list(edges)
    labels = {node.id: node.label for node in node_list}

    records = []
    for node in node_list:
        downstream = [
            labels[edge.target]
            for edge in edge_list
            if edge.source == node.id and edge.target in labels
        ]
        records.append(export_node(node, downstream))
    return records


def export_json(nodes: Iterable[GraphNode], edges: Iterable[Edge], indent: int = 2) -> str:
    """Serialize the exchange document as pretty-printed JSON."""
    return json.dumps(
        export_flow_data(nodes, edges), indent=indent, ensure_ascii=False, allow_nan=False
    )


# ─────────────────────────────────────────────────────────────────────────────
# Import
# ─────────────────────────────────────────────────────────────────────────────


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _reject_constant(name: str) -> Any:
    raise MalformedImportDocument(f"Invalid JSON: {name} is not a valid number")


def _check_record(index: int, record: Any) -> None:
    """Validate one exchange record, raising MalformedImportDocument."""
    where = f"record {index}"
    if not isinstance(record, dict):
        raise MalformedImportDocument(f"{where}: expected an object")

    label = record.get("label")
    if not isinstance(label, str):
        raise MalformedImportDocument(f"{where}: 'label' must be a string")

    try:
        NodeKind.from_type(record.get("type"))
    except ValueError as e:
        raise MalformedImportDocument(f"{where} ({label}): {e}") from e

    position = record.get("position")
    if not isinstance(position, dict):
        raise MalformedImportDocument(f"{where} ({label}): 'position' must be an object")
    for axis in ("x", "y"):
        if not _is_number(position.get(axis)):
            raise MalformedImportDocument(
                f"{where} ({label}): 'position.{axis}' must be a finite number"
            )

    downstream = record.get("downstream", [])
    if not isinstance(downstream, list) or not all(isinstance(t, str) for t in downstream):
        raise MalformedImportDocument(
            f"{where} ({label}): 'downstream' must be a list of labels"
        )

    for name in MULTI_LABEL_FIELDS:
        if name in record and not isinstance(record[name], str):
            raise MalformedImportDocument(f"{where} ({label}): '{name}' must be a string")


def validate_flow_document(data: Any) -> list[dict[str, Any]]:
    """Check the structure of a parsed exchange document.

    Returns:
        The records, unchanged.

    Raises:
        MalformedImportDocument: On the first structural problem found.
    """
    if not isinstance(data, list):
        raise MalformedImportDocument("Flow document must be a JSON array of node records")

    seen: set[str] = set()
    for index, record in enumerate(data):
        _check_record(index, record)
        label = record["label"]
        if label in seen:
            raise MalformedImportDocument(f"Duplicate label '{label}' in flow document")
        seen.add(label)
    return data


def loads_flow_document(text: str | bytes) -> list[dict[str, Any]]:
    """Parse and validate exchange-document JSON text.

    Raises:
        MalformedImportDocument: If the text is not valid JSON or the
            document is structurally invalid.
    """
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedImportDocument(f"Invalid JSON: {e}") from e
    return validate_flow_document(data)


def import_flow_data(data: Any) -> ImportResult:
    """Build fresh nodes and edges from an exchange document.

    ``data`` is either the parsed record list or JSON text. Node ids are
    freshly generated; ``downstream`` labels are resolved against the
    document's own labels, and unresolvable ones are skipped.

    Raises:
        MalformedImportDocument: If the document is invalid. Nothing is
            built in that case.
    """
    if isinstance(data, (str, bytes)):
        records = loads_flow_document(data)
    else:
        records = validate_flow_document(data)

    result = ImportResult()
    ids_by_label: dict[str, str] = {}
    for record in records:
        kind = NodeKind.from_type(record.get("type"))
        fields = kind.default_fields()
        if kind is NodeKind.MULTI_LABEL:
            for name in MULTI_LABEL_FIELDS:
                if name in record:
                    fields[name] = record[name]
        node = GraphNode(
            id=new_node_id(),
            kind=kind,
            label=record["label"],
            position=Position.coerce(record["position"]),
            extra_fields=fields,
        )
        ids_by_label[node.label] = node.id
        result.nodes.append(node)

    for record in records:
        source_id = ids_by_label[record["label"]]
        for target_label in record.get("downstream", []):
            target_id = ids_by_label.get(target_label)
            if target_id is None:
                ref = UnresolvedReference(record["label"], target_label)
                logger.warning("Skipping unresolved reference %s", ref)
                result.unresolved.append(ref)
                continue
            result.edges.append(make_edge(source_id, target_id))

    return result


# ─────────────────────────────────────────────────────────────────────────────
# Id-bearing JSON views
# ─────────────────────────────────────────────────────────────────────────────


def serialize_node(node: GraphNode) -> dict[str, Any]:
    """Serialize a GraphNode to a JSON-compatible dict."""
    return {
        "id": node.id,
        "kind": node.kind.value,
        "label": node.label,
        "position": node.position.to_dict(),
        "extra_fields": dict(node.extra_fields),
    }


def serialize_edge(edge: Edge) -> dict[str, Any]:
    return {"id": edge.id, "source": edge.source, "target": edge.target}


def serialize_graph(graph: FlowGraph) -> dict[str, Any]:
    """Serialize a FlowGraph to a JSON-compatible dict.

    Returns:
        Dict with nodes, edges, and metadata.
    """
    kind_counts: dict[str, int] = {}
    nodes = []
    for node in graph.iter_nodes():
        nodes.append(serialize_node(node))
        kind_counts[node.kind.value] = kind_counts.get(node.kind.value, 0) + 1

    return {
        "nodes": nodes,
        "edges": [serialize_edge(edge) for edge in graph.iter_edges()],
        "metadata": {
            "node_count": graph.node_count(),
            "edge_count": graph.edge_count(),
            "by_kind": kind_counts,
        },
    }
