"""
org_atlas/viz/figures.py — Static matplotlib rendering of a RenderScene.

Draws the same geometry as the Plotly renderer onto a PNG: edges by tier,
nodes as kind-coloured circles with per-node opacity, labels below, a status
dot at the upper right of each node that has a lifecycle status, and a kind
legend. Screen coordinates are used, so the viewport transform is honoured.

Usage:
    from org_atlas.viz.figures import render_static_png
    render_static_png(view.scene(), "graph.png")
"""

from __future__ import annotations

import logging

import matplotlib
try:
    matplotlib.use("Agg")
except Exception:
    pass  # backend already set

import matplotlib.patches as mpatches
import matplotlib.pyplot as plt

from org_atlas.graph.model import EntityKind
from org_atlas.interaction.highlight import EdgeTier
from org_atlas.view import RenderScene

logger = logging.getLogger(__name__)

BG = "#0F172A"

_EDGE_COLOR = {
    EdgeTier.ACTIVE: "#5EEAD4",
    EdgeTier.CONNECTED: "#94A3B8",
    EdgeTier.BACKGROUND: "#64748B",
}

DPI = 100


def render_static_png(scene: RenderScene, output_path: str, title: str | None = None) -> str:
    """
    Render a RenderScene to a PNG file at the scene's pixel size.

    Args:
        scene:       Output of GraphView.scene().
        output_path: Destination .png path.
        title:       Optional title drawn at the bottom left.

    Returns:
        output_path.
    """
    width = scene.width or 800
    height = scene.height or 600
    fig, ax = plt.subplots(figsize=(width / DPI, height / DPI), dpi=DPI)
    fig.patch.set_facecolor(BG)
    ax.set_facecolor(BG)
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_axis_off()
    fig.subplots_adjust(left=0, right=1, top=1, bottom=0)

    # Background edges first so emphasised edges land on top.
    for tier in (EdgeTier.BACKGROUND, EdgeTier.CONNECTED, EdgeTier.ACTIVE):
        for e in scene.edges:
            if e.tier is not tier:
                continue
            x0, y0 = scene.to_screen(e.x0, e.y0)
            x1, y1 = scene.to_screen(e.x1, e.y1)
            ax.plot(
                [x0, x1], [y0, y1],
                color=_EDGE_COLOR[tier], alpha=e.opacity, linewidth=e.width, zorder=1,
            )

    for n in scene.nodes:
        r = n.radius * scene.zoom
        ax.add_patch(mpatches.Circle(
            (n.screen_x, n.screen_y), r,
            facecolor=n.color, edgecolor=n.color, linewidth=2 if not n.selected else 3,
            alpha=n.opacity * 0.35, zorder=2,
        ))
        ax.add_patch(mpatches.Circle(
            (n.screen_x, n.screen_y), r * 0.3,
            facecolor=n.color, alpha=n.opacity, zorder=3,
        ))
        if n.status_color is not None:
            ax.add_patch(mpatches.Circle(
                (n.screen_x + 0.7 * r, n.screen_y - 0.7 * r), r * 0.25,
                facecolor=n.status_color, edgecolor=BG, alpha=n.opacity, zorder=4,
            ))
        ax.text(
            n.screen_x, n.screen_y + r + 4, n.label,
            ha="center", va="top", fontsize=8, color="white", alpha=n.opacity, zorder=5,
        )

    present = [k for k in EntityKind if any(n.kind is k for n in scene.nodes)]
    if present:
        handles = [mpatches.Patch(color=k.color, label=k.label) for k in present]
        legend = ax.legend(handles=handles, loc="upper left", fontsize=8, frameon=False)
        for text in legend.get_texts():
            text.set_color("white")

    if title:
        ax.text(10, height - 10, title, color="white", fontsize=10, va="bottom")

    fig.savefig(output_path, dpi=DPI, facecolor=BG)
    plt.close(fig)
    logger.info("Static figure saved to: %s (%d nodes).", output_path, len(scene.nodes))
    return output_path
