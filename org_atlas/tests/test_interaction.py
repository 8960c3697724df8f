"""
org_atlas/tests/test_interaction.py — Tests for hover/selection and highlight tiers.

Tests verify:
- With nothing hovered or selected every visible node is highlighted.
- Hover wins over selection as the active node.
- Clicking toggles selection and fires the activation callback with the node.
- A canvas click clears selection but leaves hover alone.
- Edge tiers: active / connected / background.
- Tooltip anchor follows the viewport transform plus the fixed offset.
"""

import pytest

from org_atlas.config import DEFAULT_CONFIG
from org_atlas.graph.model import Edge
from org_atlas.interaction.highlight import (
    EdgeTier,
    InteractionState,
    edge_style,
    edge_tier,
    highlighted_ids,
    node_opacity,
    node_radius,
    tooltip_position,
)
from org_atlas.interaction.viewport import Viewport


# ── Highlighting ──────────────────────────────────────────────────────────────

def test_at_rest_everything_highlighted(line_snapshot):
    state = InteractionState()
    assert highlighted_ids(line_snapshot, ["A", "B", "C"], state) == {"A", "B", "C"}


def test_hover_highlights_undirected_neighbors(line_snapshot):
    state = InteractionState()
    state.hover("C")
    assert highlighted_ids(line_snapshot, ["A", "B", "C"], state) == {"B", "C"}


def test_focus_always_highlighted(line_snapshot):
    state = InteractionState()
    state.hover("C")
    assert highlighted_ids(line_snapshot, ["A", "B", "C"], state, focus_id="A") == {"A", "B", "C"}


def test_highlight_limited_to_visible(line_snapshot):
    state = InteractionState()
    state.hover("B")
    assert highlighted_ids(line_snapshot, ["B", "C"], state) == {"B", "C"}


def test_hover_wins_over_selection(line_snapshot):
    state = InteractionState()
    state.click_node(line_snapshot.node("A"))
    state.hover("C")
    assert state.active_id == "C"
    state.unhover()
    assert state.active_id == "A"


def test_dimmed_opacity():
    assert node_opacity("x", {"y"}) == DEFAULT_CONFIG.dimmed_node_opacity
    assert node_opacity("y", {"y"}) == 1.0


# ── Selection ─────────────────────────────────────────────────────────────────

def test_click_toggles_selection_and_fires_callback(line_snapshot):
    activated = []
    state = InteractionState(on_node_activated=activated.append)
    node = line_snapshot.node("B")
    state.click_node(node)
    assert state.selected_id == "B"
    state.click_node(node)
    assert state.selected_id is None
    assert activated == [node, node]


def test_canvas_click_keeps_hover(line_snapshot):
    state = InteractionState()
    state.hover("A")
    state.click_node(line_snapshot.node("B"))
    state.click_canvas()
    assert state.selected_id is None
    assert state.hovered_id == "A"


def test_radius_priority(line_snapshot):
    state = InteractionState()
    state.hover("A")
    state.click_node(line_snapshot.node("A"))
    assert node_radius("A", state) == DEFAULT_CONFIG.selected_node_radius
    state.click_canvas()
    assert node_radius("A", state) == DEFAULT_CONFIG.hovered_node_radius
    assert node_radius("B", state) == DEFAULT_CONFIG.node_radius


# ── Edge tiers ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("edge, active, highlighted, tier", [
    (Edge("A", "B"), "A", {"A", "B"}, EdgeTier.ACTIVE),
    (Edge("A", "B"), None, {"A", "B", "C"}, EdgeTier.CONNECTED),
    (Edge("B", "C"), "A", {"A", "B", "C"}, EdgeTier.CONNECTED),
    (Edge("B", "C"), "A", {"A", "B"}, EdgeTier.BACKGROUND),
])
def test_edge_tier(edge, active, highlighted, tier):
    assert edge_tier(edge, active, highlighted) is tier


def test_edge_style_hierarchy():
    active = edge_style(EdgeTier.ACTIVE)
    connected = edge_style(EdgeTier.CONNECTED)
    background = edge_style(EdgeTier.BACKGROUND)
    assert active.opacity > connected.opacity > background.opacity
    assert active.width > connected.width


# ── Tooltip ───────────────────────────────────────────────────────────────────

def test_tooltip_follows_viewport():
    vp = Viewport()
    vp.zoom_by(1.0)
    vp.pan_x, vp.pan_y = 10.0, 20.0
    ox, oy = DEFAULT_CONFIG.tooltip_offset
    assert tooltip_position((50.0, 60.0), vp) == (110.0 + ox, 140.0 + oy)
