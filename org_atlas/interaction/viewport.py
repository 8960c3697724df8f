"""
org_atlas/interaction/viewport.py — Pan/zoom viewport controller.

The viewport is an affine transform (translation + uniform scale) applied at
render time on top of layout coordinates:

    screen = layout × zoom + pan

Layout math is always done in untransformed space; nothing here reads or
writes node positions, so panning and the simulation loop never contend.

Pan is a direct drag: while a primary-button drag that started on empty
canvas is active, the pan offset tracks the pointer relative to where the
drag began. A pointer-down on a node never starts a pan.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from org_atlas.config import DEFAULT_CONFIG, OrgAtlasConfig

logger = logging.getLogger(__name__)

PRIMARY_BUTTON = 0


@dataclass
class _Drag:
    start_x: float
    start_y: float
    origin_pan_x: float
    origin_pan_y: float


class Viewport:
    """
    Render-time pan/zoom state.

    Attributes:
        zoom:   Uniform scale, clamped to [config.min_zoom, config.max_zoom].
        pan_x:  Horizontal translation in screen pixels.
        pan_y:  Vertical translation in screen pixels.
    """

    def __init__(self, config: OrgAtlasConfig = DEFAULT_CONFIG):
        self.config = config
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        self._drag: Optional[_Drag] = None

    def __repr__(self) -> str:
        return f"Viewport(zoom={self.zoom:.2f}, pan=({self.pan_x:.1f}, {self.pan_y:.1f}))"

    # ── Zoom ─────────────────────────────────────────────────────────────────

    def zoom_by(self, delta: float) -> float:
        """Nudge zoom by delta, clamped. Returns the new zoom."""
        clamped = max(self.config.min_zoom, min(self.config.max_zoom, self.zoom + delta))
        self.zoom = round(clamped, 6)
        logger.debug("Zoom → %.2f", self.zoom)
        return self.zoom

    def zoom_in(self) -> float:
        return self.zoom_by(self.config.zoom_step)

    def zoom_out(self) -> float:
        return self.zoom_by(-self.config.zoom_step)

    def wheel(self, delta_y: float) -> float:
        """One wheel tick: scrolling up (negative delta) zooms in, down zooms out."""
        if delta_y < 0:
            return self.zoom_by(self.config.wheel_zoom_step)
        if delta_y > 0:
            return self.zoom_by(-self.config.wheel_zoom_step)
        return self.zoom

    # ── Pan ──────────────────────────────────────────────────────────────────

    @property
    def dragging(self) -> bool:
        return self._drag is not None

    def pointer_down(self, x: float, y: float, on_node: bool = False, button: int = PRIMARY_BUTTON) -> bool:
        """
        Start a pan if the press is a primary-button press on empty canvas.

        Returns:
            True if a pan drag started.
        """
        if on_node or button != PRIMARY_BUTTON:
            return False
        self._drag = _Drag(x, y, self.pan_x, self.pan_y)
        return True

    def pointer_move(self, x: float, y: float) -> bool:
        """Track the pointer while dragging. Returns True if the pan changed."""
        if self._drag is None:
            return False
        self.pan_x = self._drag.origin_pan_x + (x - self._drag.start_x)
        self.pan_y = self._drag.origin_pan_y + (y - self._drag.start_y)
        return True

    def pointer_up(self) -> None:
        self._drag = None

    def reset(self) -> None:
        """Zoom back to 1 and pan back to the origin."""
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        self._drag = None

    # ── Coordinate transforms ────────────────────────────────────────────────

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        """Layout coordinates → screen coordinates."""
        return x * self.zoom + self.pan_x, y * self.zoom + self.pan_y

    def to_layout(self, sx: float, sy: float) -> tuple[float, float]:
        """Screen coordinates → layout coordinates."""
        return (sx - self.pan_x) / self.zoom, (sy - self.pan_y) / self.zoom

    def transform_string(self) -> str:
        """SVG-style transform attribute for the graph group."""
        return f"translate({self.pan_x:g}, {self.pan_y:g}) scale({self.zoom:g})"
