"""
org_atlas/tests/test_filters.py — Tests for the filter pipeline.

Tests verify:
- Each filter narrows the visible set; adding a filter never adds nodes.
- Team scope and focus follow full-graph adjacency.
- Conflict-only keeps flagged nodes and their neighbors; bottleneck-only uses
  the flag or the load threshold.
- Search matches label, kind and role case-insensitively.
- The derived edge set never references a hidden node.
- The UI helpers keep conflict-only and bottleneck-only exclusive.
"""

from dataclasses import replace

import pytest

from org_atlas.config import DEFAULT_CONFIG
from org_atlas.graph.filters import (
    ALL_TEAMS,
    FilterConfig,
    apply_filters,
    filter_bottlenecks,
    filter_graph,
)
from org_atlas.graph.model import EntityKind


def visible_ids(snapshot, filters, config=DEFAULT_CONFIG) -> set[str]:
    return {n.id for n in apply_filters(snapshot, filters, config)}


# ── Defaults ──────────────────────────────────────────────────────────────────

def test_default_filters_show_everything(demo_snapshot):
    nodes = apply_filters(demo_snapshot, FilterConfig())
    assert [n.id for n in nodes] == demo_snapshot.ids()


def test_empty_result_is_not_an_error(demo_snapshot):
    result = filter_graph(demo_snapshot, FilterConfig(search="no such entity"))
    assert result.nodes == []
    assert result.edges == []


# ── Kind toggles ──────────────────────────────────────────────────────────────

class TestKindToggles:

    def test_toggle_hides_kind(self, demo_snapshot):
        filters = FilterConfig().toggle_kind("person")
        nodes = apply_filters(demo_snapshot, filters)
        assert nodes
        assert all(n.kind is not EntityKind.PERSON for n in nodes)

    def test_toggle_twice_restores(self, demo_snapshot):
        filters = FilterConfig().toggle_kind(EntityKind.TOPIC).toggle_kind(EntityKind.TOPIC)
        assert visible_ids(demo_snapshot, filters) == set(demo_snapshot.ids())

    def test_hide_kinds(self, demo_snapshot):
        filters = FilterConfig().hide_kinds("document", "decision")
        kinds = {n.kind for n in apply_filters(demo_snapshot, filters)}
        assert kinds == {EntityKind.PERSON, EntityKind.TEAM, EntityKind.TOPIC}


# ── Team scope / focus ────────────────────────────────────────────────────────

class TestScopeAndFocus:

    def test_team_scope(self, demo_snapshot):
        filters = FilterConfig(team_scope="team-3")
        assert visible_ids(demo_snapshot, filters) == {"team-3", "person-3", "topic-4"}

    def test_all_teams_disables_scope(self, demo_snapshot):
        assert visible_ids(demo_snapshot, FilterConfig(team_scope=ALL_TEAMS)) == set(demo_snapshot.ids())

    def test_unknown_team_scope_is_empty(self, demo_snapshot):
        assert visible_ids(demo_snapshot, FilterConfig(team_scope="team-99")) == set()

    def test_focus_two_hops(self, line_snapshot):
        assert visible_ids(line_snapshot, FilterConfig(focus_id="C")) == {"A", "B", "C"}

    def test_focus_depth_from_config(self, line_snapshot):
        config = replace(DEFAULT_CONFIG, neighborhood_depth=1)
        assert visible_ids(line_snapshot, FilterConfig(focus_id="C"), config) == {"B", "C"}

    def test_unknown_focus_is_ignored(self, demo_snapshot):
        assert visible_ids(demo_snapshot, FilterConfig(focus_id="ghost")) == set(demo_snapshot.ids())

    def test_focus_routes_through_hidden_nodes(self, make_snapshot):
        """Hiding the team in the middle must not cut A out of C's two-hop neighborhood."""
        snap = make_snapshot(
            ("A", "person", ["B"]),
            ("B", "team", ["C"]),
            ("C", "person", []),
        )
        filters = FilterConfig(focus_id="C").hide_kinds("team")
        assert visible_ids(snap, filters) == {"A", "C"}


# ── Conflict / bottleneck ─────────────────────────────────────────────────────

class TestFlags:

    def test_conflicts_only(self, demo_snapshot):
        ids = visible_ids(demo_snapshot, FilterConfig(conflicts_only=True))
        assert ids == {
            "decision-2", "decision-4", "person-4",
            "person-2", "topic-1", "person-5", "topic-3", "team-4",
        }

    def test_conflicts_only_without_conflicts_is_empty(self, line_snapshot):
        assert visible_ids(line_snapshot, FilterConfig(conflicts_only=True)) == set()

    def test_conflict_neighbor_checked_in_full_graph(self, make_snapshot):
        snap = make_snapshot(
            ("p", "person", ["d"]),
            ("d", "decision", [], {"has_conflict": True}),
        )
        filters = FilterConfig(conflicts_only=True).hide_kinds("decision")
        assert visible_ids(snap, filters) == {"p"}

    def test_bottlenecks_only(self, demo_snapshot):
        ids = visible_ids(demo_snapshot, FilterConfig(bottlenecks_only=True))
        assert ids == {"person-1", "person-4", "person-7", "person-8"}

    @pytest.mark.parametrize("load, flagged, kept", [
        (76.0, False, True),
        (75.0, False, False),
        (None, True, True),
        (10.0, True, True),
        (None, False, False),
    ])
    def test_bottleneck_predicate(self, make_snapshot, load, flagged, kept):
        snap = make_snapshot(("n", "person", [], {"load_score": load, "is_bottleneck": flagged}))
        assert bool(filter_bottlenecks(list(snap), 75.0)) is kept

    def test_helpers_are_mutually_exclusive(self):
        filters = FilterConfig().with_conflicts_only(True).with_bottlenecks_only(True)
        assert filters.bottlenecks_only and not filters.conflicts_only
        filters = filters.with_conflicts_only(True)
        assert filters.conflicts_only and not filters.bottlenecks_only
        assert not filters.with_conflicts_only(False).conflicts_only


# ── Search ────────────────────────────────────────────────────────────────────

class TestSearch:

    def test_label_match_case_insensitive(self, demo_snapshot):
        assert visible_ids(demo_snapshot, FilterConfig(search="DESIGN")) == {"team-3", "person-3"}

    def test_kind_match(self, demo_snapshot):
        ids = visible_ids(demo_snapshot, FilterConfig(search="topic"))
        assert ids == {f"topic-{i}" for i in range(1, 6)}

    def test_role_match(self, demo_snapshot):
        assert "person-8" in visible_ids(demo_snapshot, FilterConfig(search="ceo"))

    def test_blank_search_is_noop(self, demo_snapshot):
        assert visible_ids(demo_snapshot, FilterConfig(search="   ")) == set(demo_snapshot.ids())


# ── Pipeline invariants ───────────────────────────────────────────────────────

@pytest.mark.parametrize("filters", [
    FilterConfig(team_scope="team-1"),
    FilterConfig(focus_id="person-8"),
    FilterConfig(conflicts_only=True),
    FilterConfig(bottlenecks_only=True),
    FilterConfig(search="product"),
    FilterConfig().hide_kinds("team"),
])
def test_adding_a_filter_never_adds_nodes(demo_snapshot, filters):
    base = visible_ids(demo_snapshot, FilterConfig(search="a"))
    narrowed = visible_ids(demo_snapshot, replace(filters, search="a"))
    assert narrowed <= base
    assert visible_ids(demo_snapshot, filters) <= set(demo_snapshot.ids())


@pytest.mark.parametrize("filters", [
    FilterConfig(),
    FilterConfig(team_scope="team-2"),
    FilterConfig(conflicts_only=True),
    FilterConfig().hide_kinds("person"),
])
def test_edges_only_between_visible_nodes(demo_snapshot, filters):
    graph = filter_graph(demo_snapshot, filters)
    ids = set(graph.ids)
    for edge in graph.edges:
        assert edge.source in ids and edge.target in ids
    assert len({e.key for e in graph.edges}) == len(graph.edges)
