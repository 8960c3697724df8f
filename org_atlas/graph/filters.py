"""
org_atlas/graph/filters.py — The combinable filter pipeline.

Reduces the full snapshot to the visible node set. Filters run in a fixed
order, each narrowing the previous result:

    kind toggles → team scope → focus → conflict-only → bottleneck-only → search

Every predicate is evaluated against the *full* snapshot, never the
progressively narrowed list: a focus neighborhood computed over an already
filtered view would silently drop valid two-hop connections that route
through a hidden node.

Conflict-only and bottleneck-only are independent booleans here. The UI keeps
them mutually exclusive (FilterConfig.with_conflicts_only /
with_bottlenecks_only), but apply_filters honours whichever flags are set so a
caller that wants both gets their intersection.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from org_atlas.config import DEFAULT_CONFIG, OrgAtlasConfig
from org_atlas.graph.model import (
    Edge,
    EntityKind,
    GraphNode,
    GraphSnapshot,
    materialize_edges,
    parse_kind,
)
from org_atlas.graph.neighborhood import expand_neighborhood

logger = logging.getLogger(__name__)

ALL_TEAMS = "all"


def _all_kinds_visible() -> dict[EntityKind, bool]:
    return {kind: True for kind in EntityKind}


@dataclass(frozen=True)
class FilterConfig:
    """
    Plain record of filter parameters, settable independently by the host UI.

    Fields:
        visible_kinds:     EntityKind → bool. Missing kinds count as visible.
        team_scope:        Team node id, or "all" to disable the team filter.
        focus_id:          Focus node id, or None.
        conflicts_only:    Keep nodes flagged has_conflict, or adjacent to one.
        bottlenecks_only:  Keep nodes flagged is_bottleneck, or overloaded.
        search:            Case-insensitive substring over label, kind, role.
    """

    visible_kinds: dict = field(default_factory=_all_kinds_visible)
    team_scope: str = ALL_TEAMS
    focus_id: Optional[str] = None
    conflicts_only: bool = False
    bottlenecks_only: bool = False
    search: str = ""

    def is_kind_visible(self, kind: EntityKind) -> bool:
        return bool(self.visible_kinds.get(kind, True))

    def toggle_kind(self, kind) -> "FilterConfig":
        kind = parse_kind(kind)
        kinds = dict(self.visible_kinds)
        kinds[kind] = not self.is_kind_visible(kind)
        return replace(self, visible_kinds=kinds)

    def hide_kinds(self, *kinds) -> "FilterConfig":
        hidden = {parse_kind(k) for k in kinds}
        return replace(self, visible_kinds={k: k not in hidden for k in EntityKind})

    def with_conflicts_only(self, enabled: bool) -> "FilterConfig":
        """Set conflict-only; turning it on clears bottleneck-only."""
        return replace(
            self,
            conflicts_only=enabled,
            bottlenecks_only=False if enabled else self.bottlenecks_only,
        )

    def with_bottlenecks_only(self, enabled: bool) -> "FilterConfig":
        """Set bottleneck-only; turning it on clears conflict-only."""
        return replace(
            self,
            bottlenecks_only=enabled,
            conflicts_only=False if enabled else self.conflicts_only,
        )


@dataclass
class FilteredGraph:
    """Visible node set plus the edge set derived from it (no orphan edges)."""

    nodes: list[GraphNode]
    edges: list[Edge]

    @property
    def ids(self) -> list[str]:
        return [n.id for n in self.nodes]


# ── Individual predicates ────────────────────────────────────────────────────
# Each returns the subset of `nodes` it keeps; `snapshot` is always the full graph.


def filter_by_kind(nodes: list[GraphNode], config: FilterConfig) -> list[GraphNode]:
    return [n for n in nodes if config.is_kind_visible(n.kind)]


def filter_by_team_scope(
    nodes: list[GraphNode],
    snapshot: GraphSnapshot,
    team_scope: str,
    depth: int,
) -> list[GraphNode]:
    if not team_scope or team_scope == ALL_TEAMS:
        return nodes
    if team_scope not in snapshot:
        logger.debug("Team scope %r not in snapshot — nothing in scope.", team_scope)
    scope = expand_neighborhood(snapshot, team_scope, depth)
    return [n for n in nodes if n.id in scope]


def filter_by_focus(
    nodes: list[GraphNode],
    snapshot: GraphSnapshot,
    focus_id: Optional[str],
    depth: int,
) -> list[GraphNode]:
    if focus_id is None or focus_id not in snapshot:
        return nodes
    neighborhood = expand_neighborhood(snapshot, focus_id, depth)
    return [n for n in nodes if n.id in neighborhood]


def filter_conflicts(nodes: list[GraphNode], snapshot: GraphSnapshot) -> list[GraphNode]:
    def keep(node: GraphNode) -> bool:
        if node.metadata.has_conflict:
            return True
        for neighbor_id in snapshot.neighbors(node.id):
            neighbor = snapshot.node(neighbor_id)
            if neighbor is not None and neighbor.metadata.has_conflict:
                return True
        return False

    return [n for n in nodes if keep(n)]


def filter_bottlenecks(nodes: list[GraphNode], load_threshold: float) -> list[GraphNode]:
    def keep(node: GraphNode) -> bool:
        meta = node.metadata
        if meta.is_bottleneck:
            return True
        return meta.load_score is not None and meta.load_score > load_threshold

    return [n for n in nodes if keep(n)]


def filter_by_search(nodes: list[GraphNode], search: str) -> list[GraphNode]:
    needle = search.strip().lower()
    if not needle:
        return nodes

    def keep(node: GraphNode) -> bool:
        haystacks = [node.label, node.kind.value, node.metadata.role or ""]
        return any(needle in h.lower() for h in haystacks)

    return [n for n in nodes if keep(n)]


# ── Pipeline ─────────────────────────────────────────────────────────────────


def apply_filters(
    snapshot: GraphSnapshot,
    filters: FilterConfig,
    config: OrgAtlasConfig = DEFAULT_CONFIG,
) -> list[GraphNode]:
    """
    Run the filter pipeline and return the visible nodes in snapshot order.

    Args:
        snapshot: Full GraphSnapshot.
        filters:  FilterConfig with the user's current parameters.
        config:   OrgAtlasConfig (neighborhood_depth, bottleneck_load_threshold).

    Returns:
        Visible nodes. An empty list is a valid result (empty canvas), never
        an error.
    """
    depth = config.neighborhood_depth
    nodes = list(snapshot)

    nodes = filter_by_kind(nodes, filters)
    nodes = filter_by_team_scope(nodes, snapshot, filters.team_scope, depth)
    nodes = filter_by_focus(nodes, snapshot, filters.focus_id, depth)
    if filters.conflicts_only:
        nodes = filter_conflicts(nodes, snapshot)
    if filters.bottlenecks_only:
        nodes = filter_bottlenecks(nodes, config.bottleneck_load_threshold)
    nodes = filter_by_search(nodes, filters.search)

    logger.debug(
        "Filters applied: %d of %d node(s) visible.", len(nodes), len(snapshot)
    )
    return nodes


def filter_graph(
    snapshot: GraphSnapshot,
    filters: FilterConfig,
    config: OrgAtlasConfig = DEFAULT_CONFIG,
) -> FilteredGraph:
    """Apply the filter pipeline and derive the matching edge set."""
    nodes = apply_filters(snapshot, filters, config)
    edges = materialize_edges(snapshot, (n.id for n in nodes))
    return FilteredGraph(nodes=nodes, edges=edges)
