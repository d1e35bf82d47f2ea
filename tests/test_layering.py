"""Tests for layer assignment."""

import logging

from charplot.layering import Dummy, assign_layers, find_back_edges, split_long_edges
from charplot.models import GraphModel, NodeRecord


class TestAssignLayers:
    """Tests for longest-path layering."""

    def test_chain(self, make_graph):
        result = assign_layers(make_graph([("a", "b"), ("b", "c")]))
        assert result.layers == {"a": 0, "b": 1, "c": 2}
        assert result.excluded == []

    def test_longest_path_wins(self, make_graph):
        graph = make_graph([("a", "b"), ("b", "c"), ("c", "d"), ("a", "d")])
        assert assign_layers(graph).layers["d"] == 3

    def test_disconnected_components_start_at_zero(self, make_graph):
        graph = make_graph(
            [("a", "b"), ("c", "d")],
            nodes=[NodeRecord("lonely")],
        )
        layers = assign_layers(graph).layers
        assert layers == {"lonely": 0, "a": 0, "b": 1, "c": 0, "d": 1}

    def test_every_node_gets_one_layer(self, make_graph):
        graph = make_graph([("a", "b"), ("a", "c"), ("c", "b"), ("d", "b")])
        result = assign_layers(graph)
        assert set(result.layers) == {"a", "b", "c", "d"}
        assert all(layer >= 0 for layer in result.layers.values())

    def test_layers_are_contiguous(self, make_graph):
        graph = make_graph([("a", "b"), ("a", "c"), ("c", "d"), ("b", "d"), ("x", "d")])
        layers = set(assign_layers(graph).layers.values())
        assert layers == set(range(max(layers) + 1))

    def test_members_grouped_by_layer(self, make_graph):
        result = assign_layers(make_graph([("a", "b"), ("a", "c")]))
        assert result.members() == [["a"], ["b", "c"]]
        assert result.layer_count == 2

    def test_empty_graph(self):
        result = assign_layers(GraphModel())
        assert result.layers == {}
        assert result.layer_count == 0


class TestCycles:
    """Tests for back-edge exclusion."""

    def test_three_cycle_excludes_closing_edge(self, make_graph):
        graph = make_graph([("a", "b"), ("b", "c"), ("c", "a")])
        result = assign_layers(graph)
        assert result.layers == {"a": 0, "b": 1, "c": 2}
        assert [(n.source, n.target) for n in result.excluded] == [("c", "a")]
        assert result.back_edges == {2}

    def test_self_loop(self, make_graph):
        result = assign_layers(make_graph([("a", "a"), ("a", "b")]))
        assert result.layers == {"a": 0, "b": 1}
        assert result.back_edges == {0}

    def test_back_edge_reached_from_root(self, make_graph):
        graph = make_graph([("start", "a"), ("a", "b"), ("b", "a")])
        result = assign_layers(graph)
        assert result.layers == {"start": 0, "a": 1, "b": 2}
        assert result.back_edges == {2}

    def test_cycle_is_logged(self, make_graph, caplog):
        with caplog.at_level(logging.WARNING, logger="charplot.layering"):
            assign_layers(make_graph([("a", "b"), ("b", "a")]))
        assert any("excluded from layering" in r.getMessage() for r in caplog.records)

    def test_dag_is_acyclic(self, make_graph):
        import networkx as nx

        graph = make_graph([("a", "b"), ("b", "c"), ("c", "a"), ("c", "b"), ("b", "b")])
        assert nx.is_directed_acyclic_graph(assign_layers(graph).dag)

    def test_find_back_edges_is_deterministic(self, make_graph):
        graph = make_graph([("a", "b"), ("b", "c"), ("c", "a"), ("c", "b")])
        assert find_back_edges(graph) == find_back_edges(graph)


class TestLongEdges:
    """Tests for splitting edges that skip layers."""

    def test_one_dummy_per_skipped_layer(self, make_graph):
        graph = make_graph([("a", "b"), ("b", "c"), ("c", "d"), ("a", "d")])
        result = split_long_edges(graph, assign_layers(graph))
        assert result.chains == {3: [Dummy(3, 1), Dummy(3, 2)]}
        assert result.layers[Dummy(3, 2)] == 2
        assert result.members()[1] == ["b", Dummy(3, 1)]

    def test_dag_edges_join_adjacent_layers(self, make_graph):
        graph = make_graph([("a", "b"), ("b", "c"), ("a", "c"), ("x", "c")])
        result = split_long_edges(graph, assign_layers(graph))
        assert all(result.layers[v] == result.layers[u] + 1 for u, v in result.dag.edges())
        assert not result.dag.has_edge("a", "c")
        assert result.layer_count == 3

    def test_back_edges_are_left_alone(self, make_graph):
        graph = make_graph([("a", "b"), ("b", "c"), ("c", "a")])
        plain = assign_layers(graph)
        result = split_long_edges(graph, plain)
        assert result.chains == {}
        assert result.excluded == plain.excluded
        assert result.back_edges == {2}
