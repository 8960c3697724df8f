"""
org_atlas/layout/engine.py — Force-directed layout engine.

State machine:

    IDLE ──configure()──▶ SEEDING ──▶ SIMULATING ──(budget spent)──▶ SETTLED
                             ▲                                          │
                             └──── visible set / size / focus change ───┘

Seeding (on every change to the visible ids, canvas size or focus id):
    - The focus node, if visible, is pinned at the canvas centre.
    - Its declared neighbors sit on a circle of focus_neighbor_radius,
      spread by their index in the focus node's connection list.
    - Every other node sits on a circle of ring_radius_fraction ×
      min(width, height), spread by its index in the visible list.
    - Bounded uniform jitter is added to both placements; velocities are zero.

Each simulation step, for every node:
    (a) centre gravity × decay, decay = 1 − iteration / budget
        (focus node pulled harder than the rest);
    (b) pairwise repulsion ∝ 1 / distance², boosted below min_separation;
    (c) Hooke springs along every visible edge toward the rest length
        (longer rest length when an endpoint is the focus node);
    then velocity += force, velocity *= damping (heavier for the focus node),
    position += velocity, position clamped inside the canvas padding.

Every inverse-distance term substitutes min_distance for coincident nodes,
so forces are always finite.

Each re-seed produces a fresh LayoutSnapshot with a new version number. A
scheduled frame carries the version it was started for and drops itself if a
newer snapshot has superseded it, so two simulation runs never interleave on
the same position arrays.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np

from org_atlas.config import DEFAULT_CONFIG, OrgAtlasConfig
from org_atlas.graph.model import Edge, GraphNode
from org_atlas.layout.scheduler import FrameScheduler

logger = logging.getLogger(__name__)


class LayoutPhase(Enum):
    IDLE = "idle"
    SEEDING = "seeding"
    SIMULATING = "simulating"
    SETTLED = "settled"


@dataclass
class LayoutSnapshot:
    """
    Owned, versioned simulation state for one seeding of the visible set.

    Fields:
        version:      Monotonic id; a newer snapshot supersedes older frames.
        ids:          Node ids, row order of positions/velocities.
        width/height: Canvas dimensions the snapshot was seeded for.
        focus_index:  Row of the focus node, or None.
        positions:    (n, 2) float array, layout-space coordinates.
        velocities:   (n, 2) float array.
        edges:        (m, 2) int array of row indices, one row per undirected edge.
        rest_lengths: (m,) float array of spring rest lengths.
        iteration:    Steps taken so far.
    """

    version: int
    ids: list[str]
    width: float
    height: float
    focus_index: Optional[int]
    positions: np.ndarray
    velocities: np.ndarray
    edges: np.ndarray
    rest_lengths: np.ndarray
    iteration: int = 0
    index: dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if not self.index:
            self.index = {node_id: i for i, node_id in enumerate(self.ids)}

    @property
    def focus_id(self) -> Optional[str]:
        return self.ids[self.focus_index] if self.focus_index is not None else None

    def position_of(self, node_id: str) -> Optional[tuple[float, float]]:
        i = self.index.get(node_id)
        if i is None:
            return None
        x, y = self.positions[i]
        return float(x), float(y)

    def positions_dict(self) -> dict[str, tuple[float, float]]:
        return {
            node_id: (float(x), float(y))
            for node_id, (x, y) in zip(self.ids, self.positions)
        }


def _visible_edges(nodes: Sequence[GraphNode], index: dict[str, int]) -> list[Edge]:
    """Deduplicated undirected edges whose endpoints are both in `index`."""
    edges: set[Edge] = set()
    for node in nodes:
        for target in node.connections:
            if target != node.id and target in index:
                edges.add(Edge.between(node.id, target))
    return sorted(edges)


class LayoutEngine:
    """
    Iterative force simulation over the currently visible node set.

    Args:
        config:     OrgAtlasConfig with the layout constants.
        scheduler:  FrameScheduler driving start(). None = synchronous use
                    only (tick() / run_to_settle()).
        seed:       Seed for the jitter RNG. Same seed + same inputs → same
                    layout.
        jitter:     False disables seeding jitter entirely.
        on_update:  Called after every scheduled frame step (host redraw hook).

    Usage (synchronous):
        engine = LayoutEngine(seed=7)
        engine.configure(visible_nodes, 800, 600, focus_id="team-1")
        positions = engine.run_to_settle()
    """

    def __init__(
        self,
        config: OrgAtlasConfig = DEFAULT_CONFIG,
        scheduler: Optional[FrameScheduler] = None,
        seed: Optional[int] = None,
        jitter: bool = True,
        on_update: Optional[Callable[["LayoutEngine"], None]] = None,
    ):
        self.config = config
        self.scheduler = scheduler
        self.jitter = jitter
        self.on_update = on_update
        self._rng = np.random.default_rng(seed)
        self._snapshot: Optional[LayoutSnapshot] = None
        self._key: Optional[tuple] = None
        self._version = 0
        self._frame_handle: Optional[object] = None
        # Bumped by every stop(); a frame from an earlier run never reschedules.
        self._run = 0
        self.phase = LayoutPhase.IDLE

    # ── Public state ─────────────────────────────────────────────────────────

    @property
    def snapshot(self) -> Optional[LayoutSnapshot]:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._version

    @property
    def iteration(self) -> int:
        return self._snapshot.iteration if self._snapshot is not None else 0

    @property
    def running(self) -> bool:
        return self._frame_handle is not None

    def positions(self) -> dict[str, tuple[float, float]]:
        """Last computed positions; empty before the first seeding."""
        return self._snapshot.positions_dict() if self._snapshot is not None else {}

    def position_of(self, node_id: str) -> Optional[tuple[float, float]]:
        return self._snapshot.position_of(node_id) if self._snapshot is not None else None

    # ── Configuration / seeding ──────────────────────────────────────────────

    def configure(
        self,
        nodes: Sequence[GraphNode],
        width: float,
        height: float,
        focus_id: Optional[str] = None,
    ) -> bool:
        """
        Point the engine at a visible set; re-seed if anything changed.

        Re-seeds when the visible ids (in order), the canvas size or the
        effective focus id differ from the last seeding. A focus id that is
        not among the visible nodes counts as no focus.

        Zero/negative dimensions or an empty visible set leave the engine
        inert: any in-flight run is cancelled and the previous positions are
        held.

        Returns:
            True if a new LayoutSnapshot was seeded.
        """
        if not width or not height or width <= 0 or height <= 0 or not nodes:
            self.stop()
            self._key = None
            logger.debug(
                "Layout inert (nodes=%d, size=%sx%s) — holding previous state.",
                len(nodes), width, height,
            )
            return False

        ids = [n.id for n in nodes]
        if focus_id is not None and focus_id not in ids:
            focus_id = None
        key = (tuple(ids), float(width), float(height), focus_id)
        if key == self._key:
            return False

        self._key = key
        self._reseed(nodes, float(width), float(height), focus_id)
        if self.scheduler is not None:
            self.start()
        return True

    def _reseed(
        self,
        nodes: Sequence[GraphNode],
        width: float,
        height: float,
        focus_id: Optional[str],
    ) -> None:
        self.stop()
        self.phase = LayoutPhase.SEEDING
        cfg = self.config

        ids = [n.id for n in nodes]
        index = {node_id: i for i, node_id in enumerate(ids)}
        n = len(ids)
        cx, cy = width / 2, height / 2
        positions = np.zeros((n, 2), dtype=float)

        focus_index = index.get(focus_id) if focus_id is not None else None
        placed: set[int] = set()

        if focus_index is not None:
            positions[focus_index] = (cx, cy)
            placed.add(focus_index)
            focus_node = nodes[focus_index]
            ring = focus_node.connections
            for k, neighbor_id in enumerate(ring):
                i = index.get(neighbor_id)
                if i is None or i in placed:
                    continue
                angle = 2 * math.pi * k / len(ring)
                positions[i] = (
                    cx + math.cos(angle) * cfg.focus_neighbor_radius + self._jitter(cfg.focus_neighbor_jitter),
                    cy + math.sin(angle) * cfg.focus_neighbor_radius + self._jitter(cfg.focus_neighbor_jitter),
                )
                placed.add(i)

        radius = min(width, height) * cfg.ring_radius_fraction
        for i in range(n):
            if i in placed:
                continue
            angle = 2 * math.pi * i / n
            positions[i] = (
                cx + math.cos(angle) * radius + self._jitter(cfg.ring_jitter),
                cy + math.sin(angle) * radius + self._jitter(cfg.ring_jitter),
            )

        edges = _visible_edges(nodes, index)
        edge_rows = np.array(
            [(index[e.source], index[e.target]) for e in edges], dtype=int
        ).reshape(-1, 2)
        rest = np.array(
            [
                cfg.focus_spring_rest_length if focus_id is not None and e.touches(focus_id)
                else cfg.spring_rest_length
                for e in edges
            ],
            dtype=float,
        )

        self._version += 1
        self._snapshot = LayoutSnapshot(
            version=self._version,
            ids=ids,
            width=width,
            height=height,
            focus_index=focus_index,
            positions=self._clamp(positions, width, height),
            velocities=np.zeros((n, 2), dtype=float),
            edges=edge_rows,
            rest_lengths=rest,
            index=index,
        )
        self.phase = (
            LayoutPhase.SIMULATING if cfg.layout_iterations > 0 else LayoutPhase.SETTLED
        )
        logger.debug(
            "Layout v%d seeded: %d nodes, %d edges, focus=%s, canvas=%.0fx%.0f.",
            self._version, n, len(edges), focus_id, width, height,
        )

    def _jitter(self, amount: float) -> float:
        if not self.jitter or amount <= 0:
            return 0.0
        return float(self._rng.uniform(-amount, amount))

    def _clamp(self, positions: np.ndarray, width: float, height: float) -> np.ndarray:
        pad_x = min(self.config.canvas_padding, width / 2)
        pad_y = min(self.config.canvas_padding, height / 2)
        positions[:, 0] = np.clip(positions[:, 0], pad_x, width - pad_x)
        positions[:, 1] = np.clip(positions[:, 1], pad_y, height - pad_y)
        return positions

    # ── Simulation ───────────────────────────────────────────────────────────

    def tick(self) -> bool:
        """
        Advance the simulation by one step.

        Returns:
            True if more steps remain in the budget, False once settled (or if
            there is nothing to simulate).
        """
        s = self._snapshot
        cfg = self.config
        budget = cfg.layout_iterations
        if s is None or s.iteration >= budget:
            return False

        pos, vel = s.positions, s.velocities
        n = len(s.ids)
        decay = 1.0 - s.iteration / budget
        forces = np.zeros_like(pos)

        # (a) centre gravity, fading over the budget
        gravity = np.full(n, cfg.gravity_strength)
        if s.focus_index is not None:
            gravity[s.focus_index] = cfg.focus_gravity_strength
        centre = np.array([s.width / 2, s.height / 2])
        forces += (centre - pos) * (gravity * decay)[:, None]

        # (b) pairwise repulsion
        if n > 1:
            diff = pos[:, None, :] - pos[None, :, :]
            dist = np.maximum(np.sqrt((diff ** 2).sum(axis=-1)), cfg.min_distance)
            magnitude = cfg.repulsion_strength / dist ** 2
            magnitude = np.where(
                dist < cfg.min_separation, magnitude * cfg.short_range_boost, magnitude
            )
            np.fill_diagonal(magnitude, 0.0)
            forces += ((diff / dist[..., None]) * magnitude[..., None]).sum(axis=1)

        # (c) springs along visible edges
        if len(s.edges):
            src, dst = s.edges[:, 0], s.edges[:, 1]
            delta = pos[dst] - pos[src]
            dist = np.maximum(np.sqrt((delta ** 2).sum(axis=-1)), cfg.min_distance)
            pull = (delta / dist[:, None]) * (cfg.spring_strength * (dist - s.rest_lengths))[:, None]
            np.add.at(forces, src, pull)
            np.add.at(forces, dst, -pull)

        damping = np.full(n, cfg.velocity_damping)
        if s.focus_index is not None:
            damping[s.focus_index] = cfg.focus_velocity_damping

        vel += forces
        vel *= damping[:, None]
        pos += vel
        self._clamp(pos, s.width, s.height)

        s.iteration += 1
        if s.iteration >= budget:
            self.phase = LayoutPhase.SETTLED
            logger.info(
                "Layout v%d settled after %d iterations (%d nodes).",
                s.version, s.iteration, n,
            )
            return False
        return True

    def run_to_settle(self) -> dict[str, tuple[float, float]]:
        """Run the remaining budget synchronously and return the final positions."""
        self.stop()
        while self.tick():
            pass
        return self.positions()

    # ── Frame loop ───────────────────────────────────────────────────────────

    def start(self) -> bool:
        """
        Schedule the remaining steps one per frame on the scheduler.

        Returns:
            True if a frame was scheduled.
        """
        self.stop()
        if self.scheduler is None or self._snapshot is None:
            return False
        if self._snapshot.iteration >= self.config.layout_iterations:
            return False
        self._schedule(self._snapshot.version)
        return True

    def invalidate(self) -> None:
        """Stop and forget the last inputs so the next configure() re-seeds."""
        self.stop()
        self._key = None

    def stop(self) -> None:
        """Cancel the in-flight frame, if any. Positions are kept."""
        if self._frame_handle is not None and self.scheduler is not None:
            self.scheduler.cancel_frame(self._frame_handle)
        self._frame_handle = None
        self._run += 1

    def _schedule(self, version: int) -> None:
        run = self._run
        self._frame_handle = self.scheduler.request_frame(lambda: self._on_frame(version, run))

    def _current(self, version: int, run: Optional[int]) -> bool:
        return (
            run == self._run
            and self._snapshot is not None
            and self._snapshot.version == version
        )

    def _on_frame(self, version: int, run: Optional[int] = None) -> None:
        if not self._current(version, run):
            logger.debug("Frame for superseded layout v%d dropped.", version)
            return
        self._frame_handle = None
        more = self.tick()
        if self.on_update is not None:
            self.on_update(self)
        # on_update may have re-seeded or stopped the engine; that run owns the loop now.
        if more and self._current(version, run):
            self._schedule(version)
