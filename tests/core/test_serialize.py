"""Tests for the exchange document format and JSON views."""

import json

import pytest

from nodeflow.graph import FlowGraph, MalformedImportDocument, NodeKind, Position, UnresolvedReference
from nodeflow.graph.serialize import (
    export_flow_data,
    export_json,
    import_flow_data,
    loads_flow_document,
    serialize_graph,
)
from tests.core.graph_test_helpers import build_graph, edge_pairs


def roundtrip(graph):
    result = import_flow_data(export_json(graph.iter_nodes(), graph.iter_edges()))
    return FlowGraph.from_elements(result.nodes, result.edges), result


class TestExport:
    """Tests for export_flow_data()."""

    def test_records_carry_downstream_labels(self, chain_graph):
        records = export_flow_data(chain_graph.iter_nodes(), chain_graph.iter_edges())

        assert [r["label"] for r in records] == ["A", "B", "C", "D"]
        assert records[0] == {
            "type": "defaultNode",
            "label": "A",
            "position": {"x": 0.0, "y": 0.0},
            "downstream": ["B", "D"],
        }
        assert records[2]["downstream"] == []

    def test_multi_label_record_has_sublabels(self):
        graph = build_graph(["A"], kind=NodeKind.MULTI_LABEL)
        graph.update_node_data("A", "A", {"sublabel1": "top"})

        (record,) = export_flow_data(graph.iter_nodes(), graph.iter_edges())

        assert record["type"] == "multiLabelNode"
        assert record["sublabel1"] == "top"
        assert record["sublabel2"] == ""

    def test_empty_graph_exports_empty_array(self, empty_graph):
        assert json.loads(export_json(empty_graph.iter_nodes(), empty_graph.iter_edges())) == []

    def test_non_ascii_kept(self):
        graph = build_graph(["Überprüfung"])

        assert "Überprüfung" in export_json(graph.iter_nodes(), graph.iter_edges())


class TestImport:
    """Tests for import_flow_data()."""

    def test_roundtrip_preserves_structure_by_label(self, chain_graph):
        restored, result = roundtrip(chain_graph)

        assert result.unresolved == []
        assert [n.label for n in restored.iter_nodes()] == ["A", "B", "C", "D"]
        assert edge_pairs(restored) == edge_pairs(chain_graph)
        assert restored.find_by_label("C").position == chain_graph.find_by_id("C").position

    def test_roundtrip_regenerates_ids(self, chain_graph):
        restored, _ = roundtrip(chain_graph)

        assert not {n.id for n in restored.iter_nodes()} & {"A", "B", "C", "D"}

    def test_roundtrip_multi_label_fields(self):
        graph = build_graph(["A"], kind=NodeKind.MULTI_LABEL)
        graph.update_node_data("A", "A", {"sublabel1": "one", "sublabel2": "two"})

        restored, _ = roundtrip(graph)

        node = restored.find_by_label("A")
        assert node.kind is NodeKind.MULTI_LABEL
        assert node.extra_fields == {"sublabel1": "one", "sublabel2": "two"}

    def test_unresolved_reference_skipped(self):
        doc = [
            {"type": "defaultNode", "label": "A", "position": {"x": 0, "y": 0}, "downstream": ["B", "Ghost"]},
            {"type": "defaultNode", "label": "B", "position": {"x": 10, "y": 0}, "downstream": []},
        ]

        result = import_flow_data(doc)

        assert len(result.nodes) == 2
        assert len(result.edges) == 1
        assert result.unresolved == [UnresolvedReference("A", "Ghost")]

    def test_unresolved_reference_logged(self, caplog):
        doc = [{"type": "defaultNode", "label": "A", "position": {"x": 0, "y": 0}, "downstream": ["X"]}]

        with caplog.at_level("WARNING", logger="nodeflow.graph.serialize"):
            import_flow_data(doc)

        assert "A --> X (missing)" in caplog.text

    def test_missing_type_and_downstream_default(self):
        result = import_flow_data([{"label": "A", "position": {"x": 1, "y": 2}}])

        assert result.nodes[0].kind is NodeKind.SIMPLE
        assert result.edges == []

    def test_accepts_json_text(self):
        text = '[{"type": "defaultNode", "label": "A", "position": {"x": 0, "y": 0}, "downstream": []}]'

        assert [n.label for n in import_flow_data(text).nodes] == ["A"]


class TestMalformedDocuments:
    """Import is all-or-nothing: bad documents raise and build nothing."""

    @pytest.mark.parametrize(
        "document",
        [
            {"label": "A"},
            [{"type": "defaultNode", "position": {"x": 0, "y": 0}}],
            [{"type": "hexNode", "label": "A", "position": {"x": 0, "y": 0}}],
            [{"type": "defaultNode", "label": "A"}],
            [{"type": "defaultNode", "label": "A", "position": {"x": "0", "y": 0}}],
            [{"type": "defaultNode", "label": "A", "position": {"x": True, "y": 0}}],
            [{"type": "defaultNode", "label": "A", "position": {"x": 0, "y": 0}, "downstream": "B"}],
            ["not a record"],
            [
                {"type": "defaultNode", "label": "A", "position": {"x": 0, "y": 0}},
                {"type": "defaultNode", "label": "A", "position": {"x": 5, "y": 0}},
            ],
        ],
        ids=[
            "not-array",
            "missing-label",
            "unknown-type",
            "missing-position",
            "string-coordinate",
            "bool-coordinate",
            "downstream-not-list",
            "record-not-object",
            "duplicate-label",
        ],
    )
    def test_rejected(self, document):
        with pytest.raises(MalformedImportDocument):
            import_flow_data(document)

    def test_invalid_json_text(self):
        with pytest.raises(MalformedImportDocument, match="Invalid JSON"):
            loads_flow_document("[{not json")

    def test_malformed_is_value_error(self):
        with pytest.raises(ValueError):
            loads_flow_document("{}")

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_json_constants_rejected(self, constant):
        text = f'[{{"label": "A", "position": {{"x": {constant}, "y": 0}}}}]'

        with pytest.raises(MalformedImportDocument, match="not a valid number"):
            loads_flow_document(text)

    def test_non_finite_coordinate_rejected(self):
        doc = [{"type": "defaultNode", "label": "A", "position": {"x": float("inf"), "y": 0}}]

        with pytest.raises(MalformedImportDocument, match="finite"):
            import_flow_data(doc)

    def test_export_refuses_non_finite_position(self):
        graph = build_graph(["A"])
        graph.find_by_id("A").position = Position(float("nan"), 0)

        with pytest.raises(ValueError):
            export_json(graph.iter_nodes(), graph.iter_edges())


class TestSerializeGraph:
    """Tests for the id-bearing serialize_graph() view."""

    def test_metadata(self):
        graph = build_graph(["A", "B"], [("A", "B")])
        graph.add_node(kind=NodeKind.MULTI_LABEL, label="M", node_id="M")

        data = serialize_graph(graph)

        assert data["metadata"] == {
            "node_count": 3,
            "edge_count": 1,
            "by_kind": {"defaultNode": 2, "multiLabelNode": 1},
        }
        assert data["edges"] == [{"id": "A->B", "source": "A", "target": "B"}]
        assert data["nodes"][2]["extra_fields"] == {"sublabel1": "", "sublabel2": ""}
