"""
org_atlas/view.py — One interactive viewing session over a graph snapshot.

GraphView wires the engine's one-directional data flow:

    GraphSnapshot ─▶ filter pipeline ─▶ LayoutEngine ─▶ (Viewport ⊗ Interaction) ─▶ RenderScene

and routes user gestures back into it:
    - filter changes (search text, toggles, team scope, focus) re-run the
      pipeline and re-seed the layout when the visible set changes;
    - pointer events on nodes drive hover/selection;
    - pointer events on empty canvas drive pan, wheel drives zoom.

Usage:
    view = GraphView(snapshot, scheduler=ManualFrameScheduler(), seed=1)
    view.set_dimensions(800, 600)
    view.update_filters(search="eng")
    view.settle()
    scene = view.scene()
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from org_atlas.config import DEFAULT_CONFIG, OrgAtlasConfig
from org_atlas.graph.filters import FilterConfig, FilteredGraph, filter_graph
from org_atlas.graph.model import (
    STATUS_COLORS,
    EntityKind,
    GraphNode,
    GraphSnapshot,
    NodeSummary,
    describe_node,
)
from org_atlas.interaction.highlight import (
    EdgeTier,
    InteractionState,
    NodeActivatedCallback,
    active_node_id,
    edge_style,
    edge_tier,
    highlighted_ids,
    node_opacity,
    node_radius,
    tooltip_position,
)
from org_atlas.interaction.viewport import Viewport
from org_atlas.layout.engine import LayoutEngine, LayoutPhase
from org_atlas.layout.scheduler import FrameScheduler

logger = logging.getLogger(__name__)


@dataclass
class RenderedNode:
    """One node ready to draw. x/y are layout space; screen_x/screen_y include the viewport."""

    id: str
    label: str
    kind: EntityKind
    x: float
    y: float
    screen_x: float
    screen_y: float
    radius: float
    opacity: float
    color: str
    status_color: Optional[str]
    highlighted: bool
    hovered: bool
    selected: bool
    focused: bool
    node: GraphNode


@dataclass
class RenderedEdge:
    source: str
    target: str
    x0: float
    y0: float
    x1: float
    y1: float
    tier: EdgeTier
    opacity: float
    width: float


@dataclass
class RenderScene:
    """Everything a 2D canvas needs for one frame."""

    width: float
    height: float
    nodes: list[RenderedNode] = field(default_factory=list)
    edges: list[RenderedEdge] = field(default_factory=list)
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    transform: str = ""
    tooltip: Optional[tuple[float, float]] = None
    tooltip_node_id: Optional[str] = None
    focus_id: Optional[str] = None
    settled: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        return x * self.zoom + self.pan_x, y * self.zoom + self.pan_y


class GraphView:
    """
    Viewing-session state: filters, layout, viewport and interaction.

    Args:
        snapshot:          GraphSnapshot from the data layer.
        config:            OrgAtlasConfig.
        scheduler:         FrameScheduler for the layout loop. None → call
                           settle() (or layout.tick()) yourself.
        seed / jitter:     Passed to the LayoutEngine.
        on_node_activated: Fired with the full GraphNode on node click.
        filters:           Initial FilterConfig.
    """

    def __init__(
        self,
        snapshot: GraphSnapshot,
        config: OrgAtlasConfig = DEFAULT_CONFIG,
        scheduler: Optional[FrameScheduler] = None,
        seed: Optional[int] = None,
        jitter: bool = True,
        on_node_activated: Optional[NodeActivatedCallback] = None,
        filters: Optional[FilterConfig] = None,
    ):
        self.config = config
        self.snapshot = snapshot
        self.filters = filters or FilterConfig()
        self.layout = LayoutEngine(config, scheduler=scheduler, seed=seed, jitter=jitter)
        self.viewport = Viewport(config)
        self.interaction = InteractionState(on_node_activated)
        self.width = 0.0
        self.height = 0.0
        self._filtered: FilteredGraph = filter_graph(snapshot, self.filters, config)

    # ── Inputs ───────────────────────────────────────────────────────────────

    @property
    def visible(self) -> FilteredGraph:
        return self._filtered

    def set_snapshot(self, snapshot: GraphSnapshot) -> None:
        """Replace the whole snapshot (data refresh). Triggers a full re-seed."""
        self.snapshot = snapshot
        self.layout.invalidate()
        for attr in ("hovered_id", "selected_id"):
            if getattr(self.interaction, attr) not in snapshot:
                setattr(self.interaction, attr, None)
        self._refresh()

    def set_filters(self, filters: FilterConfig) -> None:
        self.filters = filters
        self._refresh()

    def update_filters(self, **changes) -> None:
        """Change individual filter fields, e.g. update_filters(search="eng")."""
        self.set_filters(replace(self.filters, **changes))

    def toggle_kind(self, kind) -> None:
        self.set_filters(self.filters.toggle_kind(kind))

    def set_conflicts_only(self, enabled: bool) -> None:
        self.set_filters(self.filters.with_conflicts_only(enabled))

    def set_bottlenecks_only(self, enabled: bool) -> None:
        self.set_filters(self.filters.with_bottlenecks_only(enabled))

    def focus_on(self, node_id: Optional[str]) -> None:
        """Centre the view on a node ("center on node" from other subsystems)."""
        self.update_filters(focus_id=node_id)

    def clear_focus(self) -> None:
        self.focus_on(None)

    def set_dimensions(self, width: float, height: float) -> None:
        self.width = float(width or 0)
        self.height = float(height or 0)
        self._configure_layout()

    def _refresh(self) -> None:
        self._filtered = filter_graph(self.snapshot, self.filters, self.config)
        logger.debug("Visible set: %d nodes, %d edges.", len(self._filtered.nodes), len(self._filtered.edges))
        self._configure_layout()

    def _configure_layout(self) -> None:
        self.layout.configure(
            self._filtered.nodes, self.width, self.height, self.filters.focus_id
        )

    # ── Layout driving ───────────────────────────────────────────────────────

    def settle(self) -> dict[str, tuple[float, float]]:
        """Run the layout to the end of its budget synchronously."""
        return self.layout.run_to_settle()

    @property
    def settled(self) -> bool:
        return self.layout.phase is LayoutPhase.SETTLED

    # ── Pointer gestures ─────────────────────────────────────────────────────

    def pointer_enter_node(self, node_id: str) -> None:
        self.interaction.hover(node_id)

    def pointer_leave_node(self, node_id: Optional[str] = None) -> None:
        if node_id is None or self.interaction.hovered_id == node_id:
            self.interaction.unhover()

    def click_node(self, node_id: str) -> None:
        node = self.snapshot.node(node_id)
        if node is not None:
            self.interaction.click_node(node)

    def click_canvas(self) -> None:
        self.interaction.click_canvas()

    def pointer_down(self, x: float, y: float, node_id: Optional[str] = None, button: int = 0) -> bool:
        """Pointer-down; pressing on a node is consumed here and never pans."""
        return self.viewport.pointer_down(x, y, on_node=node_id is not None, button=button)

    def pointer_move(self, x: float, y: float) -> bool:
        return self.viewport.pointer_move(x, y)

    def pointer_up(self) -> None:
        self.viewport.pointer_up()

    def wheel(self, delta_y: float) -> float:
        return self.viewport.wheel(delta_y)

    def node_at(self, sx: float, sy: float) -> Optional[str]:
        """Topmost visible node whose circle contains the screen point, if any."""
        lx, ly = self.viewport.to_layout(sx, sy)
        hit = None
        for node in self._filtered.nodes:
            pos = self.layout.position_of(node.id)
            if pos is None:
                continue
            r = node_radius(node.id, self.interaction, self.config)
            if (pos[0] - lx) ** 2 + (pos[1] - ly) ** 2 <= r * r:
                hit = node.id
        return hit

    def describe(self, node_id: str) -> Optional[NodeSummary]:
        return describe_node(self.snapshot, node_id)

    # ── Output ───────────────────────────────────────────────────────────────

    def scene(self) -> RenderScene:
        """
        Compose the current frame.

        Nodes without a computed position (inert engine: zero canvas size)
        are omitted, and so are their edges, keeping the scene consistent.
        """
        cfg = self.config
        vp = self.viewport
        state = self.interaction
        focus_id = self.layout.snapshot.focus_id if self.layout.snapshot is not None else None

        scene = RenderScene(
            width=self.width,
            height=self.height,
            zoom=vp.zoom,
            pan_x=vp.pan_x,
            pan_y=vp.pan_y,
            transform=vp.transform_string(),
            focus_id=focus_id,
            settled=self.settled,
        )

        positions: dict[str, tuple[float, float]] = {}
        for node in self._filtered.nodes:
            pos = self.layout.position_of(node.id)
            if pos is not None:
                positions[node.id] = pos
        if not positions:
            return scene

        active = active_node_id(state)
        lit = highlighted_ids(self.snapshot, positions, state, focus_id)

        for node in self._filtered.nodes:
            if node.id not in positions:
                continue
            x, y = positions[node.id]
            sx, sy = vp.to_screen(x, y)
            status = node.metadata.status
            scene.nodes.append(RenderedNode(
                id=node.id,
                label=node.label,
                kind=node.kind,
                x=x,
                y=y,
                screen_x=sx,
                screen_y=sy,
                radius=node_radius(node.id, state, cfg),
                opacity=node_opacity(node.id, lit, cfg),
                color=node.kind.color,
                status_color=STATUS_COLORS[status] if status is not None else None,
                highlighted=node.id in lit,
                hovered=node.id == state.hovered_id,
                selected=node.id == state.selected_id,
                focused=node.id == focus_id,
                node=node,
            ))

        for edge in self._filtered.edges:
            if edge.source not in positions or edge.target not in positions:
                continue
            tier = edge_tier(edge, active, lit)
            style = edge_style(tier, cfg)
            (x0, y0), (x1, y1) = positions[edge.source], positions[edge.target]
            scene.edges.append(RenderedEdge(
                source=edge.source,
                target=edge.target,
                x0=x0, y0=y0, x1=x1, y1=y1,
                tier=tier,
                opacity=style.opacity,
                width=style.width,
            ))

        hovered = state.hovered_id
        if hovered is not None and hovered in positions:
            scene.tooltip = tooltip_position(positions[hovered], vp, cfg)
            scene.tooltip_node_id = hovered

        return scene
