"""Within-layer ordering by the barycenter heuristic."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable

    from .layering import LayerAssignment
    from .models import GraphModel

logger = logging.getLogger(__name__)


def insertion_rank(graph: GraphModel, assignment: LayerAssignment) -> dict[Hashable, int]:
    """Rank every layer member by first appearance in the edge list.

    Nodes that no edge mentions follow in insertion order. A dummy ranks
    just after the target of its edge, so it starts out beside the node its
    edge is heading for.
    """
    first_seen: dict[str, int] = {}
    for e in graph.edges:
        for node_id in (e.source, e.target):
            first_seen.setdefault(node_id, len(first_seen))
    offset = len(first_seen)

    keys: dict[Hashable, tuple[int, int, int]] = {
        n.id: (first_seen.get(n.id, offset + i), 0, 0) for i, n in enumerate(graph.nodes)
    }
    for index, chain in assignment.chains.items():
        target = keys[graph.edges[index].target][0]
        for dummy in chain:
            keys[dummy] = (target, 1, index)
    return {node_id: i for i, node_id in enumerate(sorted(keys, key=keys.__getitem__))}


def group_owners(graph: GraphModel, assignment: LayerAssignment) -> dict[Hashable, str]:
    """Map every grouped layer member to its group id.

    Dummies belong to a group when both ends of their edge do.
    """
    owner: dict[Hashable, str] = {
        node_id: g.id for g in graph.groups for node_id in g.node_ids
    }
    for index, chain in assignment.chains.items():
        e = graph.edges[index]
        group = owner.get(e.source)
        if group is not None and owner.get(e.target) == group:
            for dummy in chain:
                owner[dummy] = group
    return owner


def _cluster(
    layer: list[Hashable],
    keys: dict[Hashable, float],
    rank: dict[Hashable, int],
    owner: dict[Hashable, str],
) -> list[Hashable]:
    # Members of one group stay side by side, the block placed at the mean
    # key of its members.
    blocks: dict[tuple[str, Hashable], list[Hashable]] = {}
    for node_id in layer:
        group = owner.get(node_id)
        block = ("group", group) if group is not None else ("node", node_id)
        blocks.setdefault(block, []).append(node_id)

    def block_key(members: list[Hashable]) -> tuple[float, int]:
        return sum(keys[n] for n in members) / len(members), min(rank[n] for n in members)

    def member_key(node_id: Hashable) -> tuple[float, int]:
        return keys[node_id], rank[node_id]

    return [
        node_id
        for members in sorted(blocks.values(), key=block_key)
        for node_id in sorted(members, key=member_key)
    ]


def initial_order(graph: GraphModel, assignment: LayerAssignment) -> list[list[Hashable]]:
    """Order each layer by :func:`insertion_rank`, keeping groups together."""
    rank = insertion_rank(graph, assignment)
    owner = group_owners(graph, assignment)
    keys = {node_id: float(r) for node_id, r in rank.items()}
    return [_cluster(layer, keys, rank, owner) for layer in assignment.members()]


def count_crossings(order: list[list[Hashable]], assignment: LayerAssignment) -> int:
    """Count edge crossings between adjacent layers."""
    position = {node_id: i for layer in order for i, node_id in enumerate(layer)}
    layers = assignment.layers
    by_layer: dict[int, list[tuple[int, int]]] = {}
    for u, v in assignment.dag.edges():
        if layers[v] == layers[u] + 1:
            by_layer.setdefault(layers[u], []).append((position[u], position[v]))

    crossings = 0
    for segments in by_layer.values():
        for i, (u1, v1) in enumerate(segments):
            for u2, v2 in segments[i + 1:]:
                if (u1 - u2) * (v1 - v2) < 0:
                    crossings += 1
    return crossings


def _sweep(
    order: list[list[Hashable]],
    assignment: LayerAssignment,
    downward: bool,
    rank: dict[Hashable, int],
    owner: dict[Hashable, str],
) -> list[list[Hashable]]:
    layers = assignment.layers
    dag = assignment.dag
    result = [list(layer) for layer in order]
    indices = range(1, len(result)) if downward else range(len(result) - 2, -1, -1)

    for li in indices:
        ref = li - 1 if downward else li + 1
        ref_position = {node_id: i for i, node_id in enumerate(result[ref])}
        keys: dict[Hashable, float] = {}
        for current, node_id in enumerate(result[li]):
            neighbors = dag.predecessors(node_id) if downward else dag.successors(node_id)
            positions = [ref_position[nb] for nb in neighbors if layers[nb] == ref]
            keys[node_id] = sum(positions) / len(positions) if positions else float(current)
        result[li] = _cluster(result[li], keys, rank, owner)
    return result


def order_layers(
    graph: GraphModel,
    assignment: LayerAssignment,
    passes: int = 8,
) -> list[list[Hashable]]:
    """Order nodes within each layer to reduce edge crossings.

    Alternates downward and upward barycenter sweeps for at most ``passes``
    rounds, stopping early once a round leaves the order unchanged. The
    ordering with the fewest crossings seen is returned. Equal barycenters
    are broken by :func:`insertion_rank`, so the result is a pure function
    of the graph. Members of one group always form a contiguous run.

    Args:
        graph: the graph model (its edge and node order seed the ordering)
        assignment: layer assignment for the graph, dummies included
        passes: maximum number of down+up rounds

    Returns:
        List of layers, each a list of node ids in cross-axis order
    """
    rank = insertion_rank(graph, assignment)
    owner = group_owners(graph, assignment)
    order = initial_order(graph, assignment)
    best = order
    best_crossings = count_crossings(order, assignment)

    for round_number in range(passes):
        if best_crossings == 0:
            break
        swept = _sweep(order, assignment, True, rank, owner)
        swept = _sweep(swept, assignment, False, rank, owner)
        if swept == order:
            break
        order = swept
        crossings = count_crossings(order, assignment)
        if crossings < best_crossings:
            best, best_crossings = order, crossings
        logger.debug("Ordering round %d: %d crossings", round_number + 1, crossings)

    return best
