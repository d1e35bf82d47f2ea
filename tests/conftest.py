"""Shared fixtures for charplot tests."""

import pytest

from charplot.models import Direction, EdgeKind, EdgeRecord, GraphModel, NodeRecord


def build_graph(edges, nodes=None, direction=Direction.TD, **kwargs):
    """Build a GraphModel from (source, target) pairs.

    Nodes not listed explicitly are created in order of first appearance.
    Edge tuples may carry a third item (EdgeKind) and a fourth (label).
    """
    records = list(nodes or [])
    seen = {n.id for n in records}
    edge_records = []
    for item in edges:
        source, target = item[0], item[1]
        kind = item[2] if len(item) > 2 else EdgeKind.ARROW
        label = item[3] if len(item) > 3 else None
        for node_id in (source, target):
            if node_id not in seen:
                seen.add(node_id)
                records.append(NodeRecord(node_id))
        edge_records.append(EdgeRecord(source, target, kind, label))
    return GraphModel(
        nodes=tuple(records),
        edges=tuple(edge_records),
        direction=direction,
        **kwargs,
    )


@pytest.fixture
def make_graph():
    return build_graph
