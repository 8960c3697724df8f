"""
org_atlas/tests/test_builder.py — Tests for org_atlas.graph.builder.

Tests verify:
- Entity records fold into node-local connections (team, lead, owner, graph edges).
- 'contradicts' edges and open conflict records set has_conflict.
- Decision lifecycle maps onto node status.
- JSON snapshot files and CSV table directories load to the same graph.
- Duplicate ids raise GraphSnapshotError; id-less records are skipped.
"""

import inspect
import json
import os

import pandas as pd
import pytest

from org_atlas.demo import (
    DEMO_CONFLICTS,
    DEMO_DECISIONS,
    DEMO_DOCUMENTS,
    DEMO_GRAPH_EDGES,
    DEMO_PERSONS,
    DEMO_TEAMS,
    DEMO_TOPICS,
)
from org_atlas.graph.builder import (
    build_snapshot_from_records,
    load_snapshot,
    load_snapshot_json,
    save_snapshot_json,
)
from org_atlas.graph.model import EntityKind, GraphSnapshotError, NodeStatus


# ── build_snapshot_from_records ───────────────────────────────────────────────

class TestBuildFromRecords:

    def test_demo_node_order_and_count(self, demo_snapshot):
        ids = demo_snapshot.ids()
        assert len(ids) == 27
        assert ids[0] == "person-1"
        assert ids[8] == "team-1"
        assert ids[-1] == "doc-3"

    def test_person_declares_team(self, demo_snapshot):
        assert demo_snapshot.declared_neighbors("person-3") == ("team-3",)

    def test_team_declares_lead(self, demo_snapshot):
        assert "person-1" in demo_snapshot.declared_neighbors("team-1")

    def test_graph_edges_append_to_source(self, demo_snapshot):
        assert demo_snapshot.declared_neighbors("person-8") == ("person-1",)
        assert "topic-2" in demo_snapshot.declared_neighbors("decision-1")

    def test_decision_status_mapping(self, demo_snapshot):
        assert demo_snapshot.node("decision-1").metadata.status is NodeStatus.ACTIVE
        assert demo_snapshot.node("decision-2").metadata.status is NodeStatus.PENDING
        assert demo_snapshot.node("decision-6").metadata.status is NodeStatus.RESOLVED

    def test_conflict_flags(self, demo_snapshot):
        flagged = {n.id for n in demo_snapshot if n.metadata.has_conflict}
        # decision-6's conflict is resolved and must not flag it.
        assert flagged == {"decision-2", "decision-4", "person-4"}

    def test_explicit_bottleneck_flag(self, demo_snapshot):
        flagged = {n.id for n in demo_snapshot if n.metadata.is_bottleneck}
        assert flagged == {"person-8"}

    def test_duplicate_ids_raise(self):
        with pytest.raises(GraphSnapshotError):
            build_snapshot_from_records(
                persons=[{"id": "x", "name": "X"}],
                teams=[{"id": "x", "name": "Also X"}],
            )

    def test_record_without_id_skipped(self, caplog):
        snap = build_snapshot_from_records(topics=[{"name": "orphan"}, {"id": "t", "name": "T"}])
        assert snap.ids() == ["t"]
        assert any("without an id" in r.message for r in caplog.records)

    def test_unknown_edge_target_kept_as_declaration(self):
        snap = build_snapshot_from_records(
            persons=[{"id": "p", "name": "P"}],
            graph_edges=[{"from_entity_id": "p", "to_entity_id": "nowhere", "edge_type": "references"}],
        )
        assert snap.declared_neighbors("p") == ("nowhere",)
        assert snap.neighbors("p") == set()

    def test_self_referencing_edge_skipped(self, caplog):
        snap = build_snapshot_from_records(
            persons=[{"id": "p", "name": "P"}],
            graph_edges=[{"from_entity_id": "p", "to_entity_id": "p", "edge_type": "references"}],
        )
        assert snap.declared_neighbors("p") == ()
        messages = [r.message for r in caplog.records]
        assert any("Self-referencing graph edge on p" in m for m in messages)
        assert not any("Duplicate graph edge" in m for m in messages)

    def test_duplicate_edge_logged_once(self, caplog):
        edge = {"from_entity_id": "p", "to_entity_id": "q", "edge_type": "references"}
        snap = build_snapshot_from_records(
            persons=[{"id": "p", "name": "P"}, {"id": "q", "name": "Q"}],
            graph_edges=[edge, dict(edge)],
        )
        assert snap.declared_neighbors("p") == ("q",)
        duplicates = [r for r in caplog.records if "Duplicate graph edge" in r.message]
        assert len(duplicates) == 1
        assert not any("Self-referencing" in r.message for r in caplog.records)


# ── File sources ──────────────────────────────────────────────────────────────

def test_json_round_trip(tmp_path, demo_snapshot):
    path = str(tmp_path / "snap.json")
    save_snapshot_json(demo_snapshot, path)
    loaded = load_snapshot_json(path)
    assert loaded.ids() == demo_snapshot.ids()
    assert loaded.edges() == demo_snapshot.edges()


def test_json_bare_list(tmp_path):
    path = tmp_path / "nodes.json"
    path.write_text(json.dumps([
        {"id": "a", "label": "A", "type": "topic", "connections": ["b"]},
        {"id": "b", "label": "B", "type": "document"},
    ]))
    snap = load_snapshot(str(path))
    assert snap.neighbors("b") == {"a"}
    assert snap.node("b").kind is EntityKind.DOCUMENT


def test_json_entity_tables(tmp_path):
    path = tmp_path / "tables.json"
    path.write_text(json.dumps({
        "persons": [{"id": "p1", "name": "P", "team_id": "t1"}],
        "teams": [{"id": "t1", "name": "T"}],
    }))
    snap = load_snapshot(str(path))
    assert snap.neighbors("t1") == {"p1"}


def test_malformed_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        load_snapshot(str(path))


def test_csv_tables_match_records(tmp_path, demo_snapshot):
    tables = {
        "persons.csv": DEMO_PERSONS,
        "teams.csv": DEMO_TEAMS,
        "topics.csv": DEMO_TOPICS,
        "decisions.csv": DEMO_DECISIONS,
        "documents.csv": DEMO_DOCUMENTS,
        "graph_edges.csv": DEMO_GRAPH_EDGES,
        "conflicts.csv": DEMO_CONFLICTS,
    }
    for filename, records in tables.items():
        pd.DataFrame(records).to_csv(os.path.join(tmp_path, filename), index=False)

    snap = load_snapshot(str(tmp_path))
    assert snap.ids() == demo_snapshot.ids()
    assert snap.edges() == demo_snapshot.edges()
    assert snap.node("person-8").metadata.is_bottleneck
    assert snap.node("person-4").metadata.has_conflict


def test_missing_tables_are_empty(tmp_path):
    pd.DataFrame([{"id": "t1", "name": "Solo"}]).to_csv(tmp_path / "teams.csv", index=False)
    snap = load_snapshot(str(tmp_path))
    assert snap.ids() == ["t1"]


@pytest.mark.parametrize("loader", [build_snapshot_from_records, load_snapshot])
def test_loaders_take_only_data_sources(loader):
    assert "config" not in inspect.signature(loader).parameters
