"""Tests for the undo/redo History stack."""

from nodeflow.graph import GraphNode, GraphSnapshot, History, MutationEntry
from tests.core.graph_test_helpers import build_graph


def _checkpoint(history, graph, operation="op"):
    return history.checkpoint(graph.iter_nodes(), graph.iter_edges(), MutationEntry(operation))


class TestHistoryBasics:
    """Initial state and bounds."""

    def test_starts_with_empty_floor(self):
        history = History()

        assert len(history) == 1
        assert history.cursor == 0
        assert history.current.node_count == 0
        assert not history.can_undo
        assert not history.can_redo

    def test_undo_at_floor_is_noop(self):
        history = History()

        assert history.undo() is None
        assert history.cursor == 0

    def test_redo_at_tip_is_noop(self):
        history = History()
        _checkpoint(history, build_graph(["A"]))

        assert history.redo() is None
        assert history.cursor == 1


class TestUndoRedo:
    """Cursor movement across checkpoints."""

    def test_undo_undo_redo_lands_on_first_checkpoint(self):
        history = History()
        graph = build_graph(["A"])
        _checkpoint(history, graph, "add A")
        graph.add_node(label="B", node_id="B")
        _checkpoint(history, graph, "add B")

        history.undo()
        history.undo()
        snapshot = history.redo()

        assert snapshot.labels() == ["A"]
        assert history.cursor == 1
        assert history.can_redo

    def test_checkpoint_discards_redo_branch(self):
        history = History()
        graph = build_graph(["A"])
        _checkpoint(history, graph)
        graph.add_node(label="B", node_id="B")
        _checkpoint(history, graph)

        history.undo()
        graph.update_node_data("A", "Z")
        _checkpoint(history, graph)

        assert len(history) == 3
        assert not history.can_redo
        assert history.current.labels() == ["Z", "B"]

    def test_entries_stop_at_cursor(self):
        history = History()
        graph = build_graph(["A"])
        _checkpoint(history, graph, "first")
        _checkpoint(history, graph, "second")

        history.undo()

        assert [e.operation for e in history.entries()] == ["first"]

    def test_reset(self):
        history = History()
        _checkpoint(history, build_graph(["A"]))

        history.reset()

        assert len(history) == 1
        assert history.cursor == 0


class TestSnapshotIsolation:
    """Snapshots never share state with the live graph."""

    def test_mutating_graph_after_checkpoint_leaves_snapshot_intact(self):
        history = History()
        graph = build_graph(["A"])
        _checkpoint(history, graph)

        graph.update_node_data("A", "Changed")
        graph.update_node_position("A", (99, 99))

        assert history.current.labels() == ["A"]
        assert history.current.find_node("A").position.x == 0

    def test_restored_nodes_are_copies(self):
        snapshot = GraphSnapshot.capture([GraphNode(id="n1", label="A")], [])

        restored = snapshot.restore_nodes()
        restored[0].label = "Mutated"

        assert snapshot.labels() == ["A"]

    def test_empty_snapshot_is_truthy(self):
        assert GraphSnapshot()
