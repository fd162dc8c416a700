"""Pytest fixtures for core tests."""

import pytest


@pytest.fixture
def empty_graph():
    """Fresh FlowGraph with no nodes."""
    from nodeflow.graph import FlowGraph

    return FlowGraph()


@pytest.fixture
def chain_graph():
    """A -> B -> C plus the unrelated branch A -> D."""
    from tests.core.graph_test_helpers import build_graph

    return build_graph(["A", "B", "C", "D"], [("A", "B"), ("B", "C"), ("A", "D")])


@pytest.fixture
def cycle_graph():
    """A -> B -> C -> A."""
    from tests.core.graph_test_helpers import build_graph

    return build_graph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])
