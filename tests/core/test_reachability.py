"""Tests for upstream/downstream reachability."""

from nodeflow.graph import compute_reachability
from tests.core.graph_test_helpers import build_graph, reach_summary


def reach(graph, seed):
    return reach_summary(compute_reachability(seed, graph.iter_nodes(), graph.iter_edges()))


class TestComputeReachability:
    """Tests for compute_reachability()."""

    def test_unrelated_branch_excluded(self, chain_graph):
        result = reach(chain_graph, "B")

        assert result["upstream"] == {"A"}
        assert result["downstream"] == {"C"}
        assert result["upstream_edges"] == {"A->B"}
        assert result["downstream_edges"] == {"B->C"}

    def test_descendants_are_transitive(self, chain_graph):
        result = reach(chain_graph, "A")

        assert result["upstream"] == set()
        assert result["downstream"] == {"B", "C", "D"}
        assert result["downstream_edges"] == {"A->B", "B->C", "A->D"}

    def test_leaf_has_only_ancestors(self, chain_graph):
        result = reach(chain_graph, "C")

        assert result["upstream"] == {"A", "B"}
        assert result["downstream"] == set()

    def test_cycle_terminates_and_excludes_seed(self, cycle_graph):
        result = reach(cycle_graph, "A")

        assert result["upstream"] == {"B", "C"}
        assert result["downstream"] == {"B", "C"}

    def test_cycle_includes_edges_back_into_seed(self, cycle_graph):
        result = reach(cycle_graph, "A")

        assert result["downstream_edges"] == {"A->B", "B->C", "C->A"}
        assert result["upstream_edges"] == {"A->B", "B->C", "C->A"}

    def test_diamond_reports_shared_node_once(self):
        graph = build_graph(
            ["Top", "Left", "Right", "Bottom"],
            [("Top", "Left"), ("Top", "Right"), ("Left", "Bottom"), ("Right", "Bottom")],
        )

        result = reach(graph, "Top")

        assert result["downstream"] == {"Left", "Right", "Bottom"}
        assert len(result["downstream_edges"]) == 4

    def test_parallel_edges_all_reported(self):
        graph = build_graph(["A", "B"], [("A", "B"), ("A", "B")])

        result = reach(graph, "A")

        assert result["downstream"] == {"B"}
        assert result["downstream_edges"] == {"A->B", "A->B#1"}

    def test_self_loop(self):
        graph = build_graph(["A", "B"], [("A", "A"), ("A", "B")])

        result = reach(graph, "A")

        assert result["upstream"] == set()
        assert result["downstream"] == {"B"}
        assert "A->A" in result["downstream_edges"]

    def test_unknown_seed_yields_empty_sets(self, chain_graph):
        result = compute_reachability("ghost", chain_graph.iter_nodes(), chain_graph.iter_edges())

        assert result.node_ids() == {"ghost"}
        assert result.node_ids(include_seed=False) == set()
        assert result.edge_ids() == set()

    def test_highlight_set_includes_seed(self, chain_graph):
        result = compute_reachability("B", chain_graph.iter_nodes(), chain_graph.iter_edges())

        assert result.node_ids() == {"A", "B", "C"}
        assert result.to_dict()["downstream_node_ids"] == ["C"]

    def test_long_chain(self):
        labels = [f"N{i}" for i in range(500)]
        graph = build_graph(labels, list(zip(labels, labels[1:])))

        result = reach(graph, "N250")

        assert len(result["upstream"]) == 250
        assert len(result["downstream"]) == 249
