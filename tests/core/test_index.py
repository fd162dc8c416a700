"""Tests for the adjacency index."""

from nodeflow.graph import Edge, GraphNode, build_index
from tests.core.graph_test_helpers import build_graph


class TestBuildIndex:
    """Tests for build_index()."""

    def test_every_node_has_an_entry(self):
        graph = build_graph(["A", "B", "Lonely"], [("A", "B")])

        index = build_index(graph.iter_nodes(), graph.iter_edges())

        assert len(index) == 3
        assert "Lonely" in index
        assert index.incoming("Lonely") == []
        assert index.outgoing("Lonely") == []

    def test_incoming_and_outgoing(self, chain_graph):
        index = build_index(chain_graph.iter_nodes(), chain_graph.iter_edges())

        assert index.outgoing("A") == ["B", "D"]
        assert index.incoming("B") == ["A"]
        assert index.incoming("A") == []

    def test_parallel_edges_repeat_neighbour(self):
        graph = build_graph(["A", "B"], [("A", "B"), ("A", "B")])

        index = build_index(graph.iter_nodes(), graph.iter_edges())

        assert index.outgoing("A") == ["B", "B"]
        assert [e.id for e in index.iter_outgoing_edges("A")] == ["A->B", "A->B#1"]

    def test_dangling_edges_skipped(self):
        nodes = [GraphNode(id="A"), GraphNode(id="B")]
        edges = [Edge(id="e1", source="A", target="B"), Edge(id="e2", source="A", target="ghost")]

        index = build_index(nodes, edges)

        assert index.outgoing("A") == ["B"]
        assert index.skipped_edge_count == 1

    def test_unknown_node_queries(self, chain_graph):
        index = build_index(chain_graph.iter_nodes(), chain_graph.iter_edges())

        assert index.adjacency("nope") is None
        assert list(index.iter_incoming_edges("nope")) == []
