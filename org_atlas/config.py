"""
org_atlas/config.py — All tunable parameters for the graph engine.

No layout constant, filter threshold or opacity should be hardcoded in an
engine module. Every one of them lives here so that calibration changes are
a single-file diff.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class OrgAtlasConfig:
    """
    Immutable configuration for the filter, layout and interaction engine.

    Override by constructing a new OrgAtlasConfig (or dataclasses.replace on
    DEFAULT_CONFIG) with the desired values.
    """

    # ── Filter Pipeline ───────────────────────────────────────────────────────
    neighborhood_depth: int = 2
    # Hop count used by the focus and team-scope filters.

    bottleneck_load_threshold: float = 75.0
    # A node whose load score exceeds this value counts as a bottleneck even
    # when its explicit is_bottleneck flag is unset. Load scores are 0–100.

    # ── Layout: seeding ───────────────────────────────────────────────────────
    layout_iterations: int = 200
    # Fixed integration budget. The only termination guarantee of a run.

    focus_neighbor_radius: float = 150.0
    # Neighbors of the focus node are seeded on a circle of this radius.

    ring_radius_fraction: float = 0.38
    # Every other node is seeded on a circle of radius
    # ring_radius_fraction × min(width, height).

    focus_neighbor_jitter: float = 20.0
    ring_jitter: float = 40.0
    # Half-width of the uniform random offset added to seeded coordinates.

    # ── Layout: forces ────────────────────────────────────────────────────────
    gravity_strength: float = 0.02
    focus_gravity_strength: float = 0.08
    # Pull toward the canvas centre, multiplied by the linear decay factor
    # (1.0 at the first step, 1/iterations at the last).

    repulsion_strength: float = 4000.0
    # Pairwise repulsion = repulsion_strength / distance².

    min_separation: float = 60.0
    short_range_boost: float = 3.0
    # Pairs closer than min_separation get their repulsion multiplied by
    # short_range_boost so nodes never sit on top of each other.

    spring_strength: float = 0.04
    spring_rest_length: float = 120.0
    focus_spring_rest_length: float = 150.0
    # Hooke spring along each edge: spring_strength × (distance − rest).

    velocity_damping: float = 0.85
    focus_velocity_damping: float = 0.5
    # Fraction of velocity retained per step. Lower = heavier damping.

    canvas_padding: float = 40.0
    # Positions are clamped to [padding, dimension − padding] on both axes.

    min_distance: float = 1.0
    # Substituted for any pair distance below it in inverse-distance forces.

    frame_interval_s: float = 1 / 60
    # Delay between simulation frames on a timer-driven scheduler.

    # ── Viewport ──────────────────────────────────────────────────────────────
    min_zoom: float = 0.3
    max_zoom: float = 2.5
    zoom_step: float = 0.2
    # Increment for the explicit zoom-in / zoom-out actions.

    wheel_zoom_step: float = 0.05
    # Increment per wheel tick.

    # ── Interaction ───────────────────────────────────────────────────────────
    dimmed_node_opacity: float = 0.2
    active_edge_opacity: float = 0.9
    connected_edge_opacity: float = 0.5
    background_edge_opacity: float = 0.1
    active_edge_width: float = 2.0
    default_edge_width: float = 1.0

    node_radius: float = 20.0
    hovered_node_radius: float = 22.0
    selected_node_radius: float = 24.0

    tooltip_offset: tuple[float, float] = (16.0, -16.0)
    # Screen-space pixel offset from the hovered node to the tooltip anchor.


# Singleton default, imported everywhere instead of constructing anew.
DEFAULT_CONFIG = OrgAtlasConfig()
