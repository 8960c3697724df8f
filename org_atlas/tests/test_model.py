"""
org_atlas/tests/test_model.py — Tests for org_atlas.graph.model.

Tests verify:
- The adjacency index is undirected and ignores dangling/self references.
- Duplicate ids raise GraphSnapshotError.
- materialize_edges deduplicates mutual declarations and never emits partial edges.
- Node records round-trip through dicts, with camelCase metadata accepted.
- describe_node reports the undirected connection count.
"""

import networkx as nx
import pytest

from org_atlas.graph.model import (
    Edge,
    EntityKind,
    GraphNode,
    GraphSnapshot,
    GraphSnapshotError,
    NodeMetadata,
    NodeStatus,
    describe_node,
    materialize_edges,
    parse_kind,
)


# ── Adjacency index ───────────────────────────────────────────────────────────

class TestAdjacency:

    def test_neighbors_are_undirected(self, line_snapshot):
        """B is a neighbor of A and of C even though only A and B declare edges."""
        assert line_snapshot.neighbors("A") == {"B"}
        assert line_snapshot.neighbors("B") == {"A", "C"}
        assert line_snapshot.neighbors("C") == {"B"}

    def test_declared_neighbors_keep_raw_direction(self, line_snapshot):
        assert line_snapshot.declared_neighbors("C") == ()
        assert line_snapshot.declared_neighbors("A") == ("B",)

    def test_unknown_id_has_no_neighbors(self, line_snapshot):
        assert line_snapshot.neighbors("zzz") == set()
        assert line_snapshot.degree("zzz") == 0

    def test_dangling_and_self_references_ignored(self, make_snapshot, caplog):
        snap = make_snapshot(("a", "person", ["a", "ghost", "b"]), ("b", "team", []))
        assert snap.neighbors("a") == {"b"}
        assert "ghost" not in snap
        assert any("unknown node ids" in r.message for r in caplog.records)

    def test_mutual_declaration_is_one_edge(self, make_snapshot):
        snap = make_snapshot(("a", "person", ["b"]), ("b", "person", ["a"]))
        assert snap.edges() == [Edge("a", "b")]
        assert snap.degree("a") == 1

    def test_to_networkx_is_a_copy(self, line_snapshot):
        G = line_snapshot.to_networkx()
        assert isinstance(G, nx.Graph)
        G.remove_node("B")
        assert line_snapshot.neighbors("A") == {"B"}

    def test_container_protocol(self, line_snapshot):
        assert len(line_snapshot) == 3
        assert "A" in line_snapshot
        assert [n.id for n in line_snapshot] == ["A", "B", "C"]


def test_duplicate_ids_raise(make_snapshot):
    with pytest.raises(GraphSnapshotError, match="Duplicate"):
        make_snapshot(("x", "person", []), ("x", "team", []))


def test_unknown_kind_raises():
    with pytest.raises(GraphSnapshotError, match="Unknown entity kind"):
        parse_kind("robot")


def test_kind_is_case_insensitive():
    assert parse_kind(" Team ") is EntityKind.TEAM
    assert EntityKind.PERSON.label == "People"


# ── Edge materialization ──────────────────────────────────────────────────────

class TestMaterializeEdges:

    def test_only_visible_endpoints(self, line_snapshot):
        assert materialize_edges(line_snapshot, ["A", "B"]) == [Edge("A", "B")]
        assert materialize_edges(line_snapshot, ["A", "C"]) == []

    def test_mutual_declarations_deduplicated(self, make_snapshot):
        snap = make_snapshot(("a", "person", ["b"]), ("b", "person", ["a"]))
        edges = materialize_edges(snap, ["a", "b"])
        assert len(edges) == 1

    def test_sorted_and_normalised(self, make_snapshot):
        snap = make_snapshot(("z", "person", ["a"]), ("a", "team", []))
        edges = materialize_edges(snap, ["z", "a"])
        assert edges == [Edge("a", "z")]
        assert Edge.between("z", "a").key == "a|z"

    def test_every_edge_endpoint_visible(self, demo_snapshot):
        visible = {"person-1", "team-1", "decision-1", "doc-2"}
        for edge in materialize_edges(demo_snapshot, visible):
            assert edge.source in visible and edge.target in visible


# ── Records ───────────────────────────────────────────────────────────────────

class TestRecords:

    def test_metadata_aliases_and_clamping(self):
        meta = NodeMetadata.from_dict(
            {"loadScore": 140, "confidence": -0.5, "hasConflict": True, "status": "Pending"}
        )
        assert meta.load_score == 100.0
        assert meta.confidence == 0.0
        assert meta.has_conflict is True
        assert meta.status is NodeStatus.PENDING

    def test_bad_status_raises(self):
        with pytest.raises(GraphSnapshotError):
            NodeMetadata.from_dict({"status": "archived"})

    def test_node_from_dict_accepts_type_key(self):
        node = GraphNode.from_dict({"id": "t1", "label": "Eng", "type": "team", "connections": ["p1"]})
        assert node.kind is EntityKind.TEAM
        assert node.connections == ("p1",)
        assert node.to_dict()["type"] == "team"

    def test_node_without_id_raises(self):
        with pytest.raises(GraphSnapshotError):
            GraphNode.from_dict({"label": "nameless", "type": "topic"})

    def test_snapshot_dict_round_trip(self, demo_snapshot):
        again = GraphSnapshot.from_dicts(demo_snapshot.to_dicts())
        assert again.ids() == demo_snapshot.ids()
        assert again.edges() == demo_snapshot.edges()
        assert again.node("person-8").metadata == demo_snapshot.node("person-8").metadata


# ── describe_node ─────────────────────────────────────────────────────────────

def test_describe_node_counts_undirected_connections(line_snapshot):
    summary = describe_node(line_snapshot, "C")
    assert summary.connection_count == 1
    assert summary.kind_label == "People"


def test_describe_unknown_node_is_none(line_snapshot):
    assert describe_node(line_snapshot, "nope") is None
