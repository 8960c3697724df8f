"""
org_atlas/tests/conftest.py — Shared pytest fixtures for the org_atlas test suite.

Fixtures:
    demo_snapshot   — The built-in demo organisation (27 nodes), session-scoped.
    line_snapshot   — A → B → C, each node declaring only its successor.
    make_snapshot   — Factory: build a GraphSnapshot from compact tuples.
    fast_config     — DEFAULT_CONFIG with a short layout budget.
"""

from dataclasses import replace

import pytest

from org_atlas.config import DEFAULT_CONFIG
from org_atlas.demo import build_demo_snapshot
from org_atlas.graph.model import GraphNode, GraphSnapshot, NodeMetadata


def _node(node_id, kind="person", connections=(), **meta) -> GraphNode:
    return GraphNode(
        id=node_id,
        label=meta.pop("label", node_id),
        kind=kind,
        connections=tuple(connections),
        metadata=NodeMetadata(**meta),
    )


@pytest.fixture(scope="session")
def demo_snapshot() -> GraphSnapshot:
    return build_demo_snapshot()


@pytest.fixture
def line_snapshot() -> GraphSnapshot:
    """A declares B, B declares C. C declares nothing."""
    return GraphSnapshot([
        _node("A", connections=["B"]),
        _node("B", connections=["C"]),
        _node("C"),
    ])


@pytest.fixture
def make_snapshot():
    """
    Build a snapshot from (id, kind, connections[, metadata-kwargs]) tuples.

    Usage:
        snap = make_snapshot(("a", "person", ["b"]), ("b", "team", [], {"has_conflict": True}))
    """
    def _make(*rows) -> GraphSnapshot:
        nodes = []
        for row in rows:
            node_id, kind, connections = row[:3]
            meta = dict(row[3]) if len(row) > 3 else {}
            nodes.append(_node(node_id, kind, connections, **meta))
        return GraphSnapshot(nodes)

    return _make


@pytest.fixture
def fast_config():
    return replace(DEFAULT_CONFIG, layout_iterations=20)
