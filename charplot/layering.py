"""Layer (rank) assignment for layered graph layout."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import networkx as nx

from .errors import CycleExcluded

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .models import GraphModel

logger = logging.getLogger(__name__)

_UNVISITED = 0
_IN_PROGRESS = 1
_FINISHED = 2


@dataclass(frozen=True, order=True)
class Dummy:
    """Placeholder for a long edge in a layer it passes through."""

    edge: int
    layer: int


@dataclass
class LayerAssignment:
    """Result of layer assignment.

    Attributes:
        layers: node id -> layer index (0 is the first layer)
        dag: acyclic graph of the edges that constrain layering
        excluded: edges dropped from layering because they close a cycle
        chains: edge index -> dummies the edge passes through, in flow order
    """

    layers: dict[str | Dummy, int] = field(default_factory=dict)
    dag: nx.DiGraph = field(default_factory=nx.DiGraph)
    excluded: list[CycleExcluded] = field(default_factory=list)
    chains: dict[int, list[Dummy]] = field(default_factory=dict)

    @property
    def back_edges(self) -> set[int]:
        """Indices of edges that run against the flow (including self loops)."""
        return {notice.index for notice in self.excluded}

    @property
    def layer_count(self) -> int:
        return max(self.layers.values()) + 1 if self.layers else 0

    def members(self) -> list[list[str | Dummy]]:
        """Node ids grouped by layer, each in insertion order."""
        grouped: list[list[str | Dummy]] = [[] for _ in range(self.layer_count)]
        for node_id, layer in self.layers.items():
            grouped[layer].append(node_id)
        return grouped


def find_back_edges(graph: GraphModel) -> list[CycleExcluded]:
    """Find the edges a depth-first traversal sees closing a cycle.

    Traversal starts from nodes without incoming edges, in insertion order,
    then continues from any node not yet reached. An edge that reaches a node
    whose traversal is still in progress is a back edge; self loops always
    are.
    """
    adjacency: dict[str, list[tuple[int, str]]] = {n.id: [] for n in graph.nodes}
    in_degree = {n.id: 0 for n in graph.nodes}
    for index, e in enumerate(graph.edges):
        adjacency[e.source].append((index, e.target))
        in_degree[e.target] += 1

    roots = [n.id for n in graph.nodes if in_degree[n.id] == 0]
    rest = [n.id for n in graph.nodes if in_degree[n.id] > 0]

    state = {n.id: _UNVISITED for n in graph.nodes}
    back: list[CycleExcluded] = []

    for start in roots + rest:
        if state[start] != _UNVISITED:
            continue
        state[start] = _IN_PROGRESS
        stack: list[tuple[str, Iterator[tuple[int, str]]]] = [(start, iter(adjacency[start]))]
        while stack:
            current, successors = stack[-1]
            for index, target in successors:
                if state[target] == _IN_PROGRESS:
                    back.append(CycleExcluded(index, graph.edges[index].source, target))
                elif state[target] == _UNVISITED:
                    state[target] = _IN_PROGRESS
                    stack.append((target, iter(adjacency[target])))
                    break
            else:
                state[current] = _FINISHED
                stack.pop()

    back.sort(key=lambda notice: notice.index)
    return back


def assign_layers(graph: GraphModel) -> LayerAssignment:
    """Assign every node a layer by longest path from the sources.

    ``layer(n) = 1 + max(layer(p))`` over predecessors ``p``, and 0 for nodes
    without predecessors. Back edges found by :func:`find_back_edges` are left
    out so the computation always terminates; each is logged and reported on
    the result.

    Args:
        graph: a validated graph model

    Returns:
        LayerAssignment covering every node of the graph
    """
    excluded = find_back_edges(graph)
    skip = {notice.index for notice in excluded}
    for notice in excluded:
        logger.warning("Cycle: %s", notice)

    dag = nx.DiGraph()
    dag.add_nodes_from(n.id for n in graph.nodes)
    dag.add_edges_from(
        (e.source, e.target) for i, e in enumerate(graph.edges) if i not in skip
    )

    layers: dict[str, int] = {}
    for node_id in nx.topological_sort(dag):
        layers[node_id] = max(
            (layers[p] + 1 for p in dag.predecessors(node_id)),
            default=0,
        )

    # Keep insertion order for downstream tie-breaking
    ordered = {n.id: layers[n.id] for n in graph.nodes}
    logger.debug(
        "Assigned %d nodes to %d layers (%d back edges)",
        len(ordered),
        max(ordered.values()) + 1 if ordered else 0,
        len(excluded),
    )
    return LayerAssignment(layers=ordered, dag=dag, excluded=excluded)


def split_long_edges(graph: GraphModel, assignment: LayerAssignment) -> LayerAssignment:
    """Break edges that span several layers into chains of dummies.

    Each forward edge from layer ``i`` to layer ``j > i + 1`` gets one
    :class:`Dummy` in every layer in between, and its DAG edge is replaced
    by the chain ``source -> dummy ... -> target``. Afterwards every DAG
    edge joins adjacent layers, so ordering sees the edge in each layer it
    crosses and the router can pass it beside the nodes there instead of
    through them.
    """
    layers: dict[str | Dummy, int] = dict(assignment.layers)
    dag = nx.DiGraph()
    dag.add_nodes_from(assignment.dag.nodes)
    chains: dict[int, list[Dummy]] = {}
    skip = assignment.back_edges

    for index, e in enumerate(graph.edges):
        if index in skip:
            continue
        chain = [
            Dummy(index, layer)
            for layer in range(assignment.layers[e.source] + 1, assignment.layers[e.target])
        ]
        for dummy in chain:
            layers[dummy] = dummy.layer
        path = [e.source, *chain, e.target]
        dag.add_edges_from(zip(path, path[1:]))
        if chain:
            chains[index] = chain

    if chains:
        logger.debug(
            "Split %d long edges with %d dummies",
            len(chains),
            sum(len(chain) for chain in chains.values()),
        )
    return LayerAssignment(
        layers=layers,
        dag=dag,
        excluded=list(assignment.excluded),
        chains=chains,
    )
