"""
org_atlas/interaction/highlight.py — Hover/selection state and highlight tiers.

Highlight rule:
    - No hover and no selection: every node is highlighted (graph at rest).
    - Otherwise the active node is the hovered id if any, else the selected
      id. A node is highlighted if it is the active node, the focus node, or
      an undirected neighbor of the active node. Everything else is dimmed.

Edge tiers (three-level visual hierarchy):
    ACTIVE      one endpoint is the active node          → emphasised
    CONNECTED   both endpoints highlighted, neither active → lower opacity
    BACKGROUND  at least one endpoint dimmed             → minimal opacity

At rest every edge is CONNECTED.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from org_atlas.config import DEFAULT_CONFIG, OrgAtlasConfig
from org_atlas.graph.model import Edge, GraphNode, GraphSnapshot
from org_atlas.interaction.viewport import Viewport

logger = logging.getLogger(__name__)

NodeActivatedCallback = Callable[[GraphNode], None]


class EdgeTier(Enum):
    ACTIVE = "active"
    CONNECTED = "connected"
    BACKGROUND = "background"


class InteractionState:
    """
    At most one hovered node and at most one selected node.

    Args:
        on_node_activated: Called with the full GraphNode on every node click,
                           so the host can drive an external detail view.
    """

    def __init__(self, on_node_activated: Optional[NodeActivatedCallback] = None):
        self.hovered_id: Optional[str] = None
        self.selected_id: Optional[str] = None
        self.on_node_activated = on_node_activated

    def __repr__(self) -> str:
        return f"InteractionState(hovered={self.hovered_id!r}, selected={self.selected_id!r})"

    def hover(self, node_id: str) -> None:
        self.hovered_id = node_id

    def unhover(self) -> None:
        self.hovered_id = None

    def click_node(self, node: GraphNode) -> None:
        """Toggle selection of node and fire the activation callback."""
        self.selected_id = None if self.selected_id == node.id else node.id
        logger.debug("Selection → %r", self.selected_id)
        if self.on_node_activated is not None:
            self.on_node_activated(node)

    def click_canvas(self) -> None:
        """A click on empty canvas clears the selection; hover is untouched."""
        self.selected_id = None

    def clear(self) -> None:
        self.hovered_id = None
        self.selected_id = None

    @property
    def active_id(self) -> Optional[str]:
        return active_node_id(self)


def active_node_id(state: InteractionState) -> Optional[str]:
    """Hovered id if present, else selected id, else None."""
    return state.hovered_id or state.selected_id


def highlighted_ids(
    snapshot: GraphSnapshot,
    visible_ids: Iterable[str],
    state: InteractionState,
    focus_id: Optional[str] = None,
) -> set[str]:
    """
    Return the visible ids that render at full opacity.

    Args:
        snapshot:    Full GraphSnapshot (adjacency source).
        visible_ids: Ids currently on the canvas.
        state:       Current hover/selection.
        focus_id:    Focus node id, always highlighted when visible.
    """
    visible = set(visible_ids)
    active = active_node_id(state)
    if active is None:
        return visible

    keep = {active} | snapshot.neighbors(active)
    if focus_id is not None:
        keep.add(focus_id)
    return visible & keep


def node_opacity(
    node_id: str,
    highlighted: set[str],
    config: OrgAtlasConfig = DEFAULT_CONFIG,
) -> float:
    return 1.0 if node_id in highlighted else config.dimmed_node_opacity


def node_radius(
    node_id: str,
    state: InteractionState,
    config: OrgAtlasConfig = DEFAULT_CONFIG,
) -> float:
    if node_id == state.selected_id:
        return config.selected_node_radius
    if node_id == state.hovered_id:
        return config.hovered_node_radius
    return config.node_radius


def edge_tier(edge: Edge, active_id: Optional[str], highlighted: set[str]) -> EdgeTier:
    if active_id is not None and edge.touches(active_id):
        return EdgeTier.ACTIVE
    if edge.source in highlighted and edge.target in highlighted:
        return EdgeTier.CONNECTED
    return EdgeTier.BACKGROUND


@dataclass(frozen=True)
class EdgeStyle:
    opacity: float
    width: float


def edge_style(tier: EdgeTier, config: OrgAtlasConfig = DEFAULT_CONFIG) -> EdgeStyle:
    if tier is EdgeTier.ACTIVE:
        return EdgeStyle(config.active_edge_opacity, config.active_edge_width)
    if tier is EdgeTier.CONNECTED:
        return EdgeStyle(config.connected_edge_opacity, config.default_edge_width)
    return EdgeStyle(config.background_edge_opacity, config.default_edge_width)


def tooltip_position(
    position: tuple[float, float],
    viewport: Viewport,
    config: OrgAtlasConfig = DEFAULT_CONFIG,
) -> tuple[float, float]:
    """
    Screen-space tooltip anchor for a node at layout `position`.

    Applies the viewport's scale and translation, then the fixed pixel offset
    (config.tooltip_offset) so the tooltip does not cover the node.
    """
    sx, sy = viewport.to_screen(*position)
    ox, oy = config.tooltip_offset
    return sx + ox, sy + oy
