"""
org_atlas/viz/plotly_graph.py — Interactive Plotly rendering of a RenderScene.

Visual encoding:
    - Node colour:   entity kind (legend entry per kind)
    - Node size:     rendered radius (selected > hovered > default)
    - Node opacity:  highlight state (dimmed nodes at config.dimmed_node_opacity)
    - Red border:    has_conflict;  amber border: bottleneck
    - Edge traces:   one per highlight tier (active / connected / background)
    - Hover:         label, kind, role, status, load, confidence, flags

Coordinates are the scene's screen coordinates (layout × zoom + pan), drawn on
axes fixed to the canvas size with the y axis reversed, so the figure matches
a top-left-origin canvas.
"""

import logging

import plotly.graph_objects as go

from org_atlas.graph.model import EntityKind
from org_atlas.interaction.highlight import EdgeTier
from org_atlas.view import RenderedNode, RenderScene

logger = logging.getLogger(__name__)

_EDGE_COLORS = {
    EdgeTier.ACTIVE: "94, 234, 212",
    EdgeTier.CONNECTED: "148, 163, 184",
    EdgeTier.BACKGROUND: "100, 116, 139",
}
_BORDER_CONFLICT = "#EF4444"
_BORDER_BOTTLENECK = "#F59E0B"
_BORDER_DEFAULT = "white"


def _hover_text(rn: RenderedNode) -> str:
    meta = rn.node.metadata
    lines = [f"<b>{rn.label}</b>", f"Type: {rn.kind.value}"]
    if meta.role:
        lines.append(f"Role: {meta.role}")
    if meta.status is not None:
        lines.append(f"Status: {meta.status.value}")
    if meta.load_score is not None:
        lines.append(f"Load: {meta.load_score:.0f}")
    if meta.confidence is not None:
        lines.append(f"Confidence: {meta.confidence:.0%}")
    if meta.has_conflict:
        lines.append("⚠ Conflict")
    if meta.is_bottleneck:
        lines.append("Bottleneck")
    return "<br>".join(lines)


def _border(rn: RenderedNode) -> str:
    if rn.node.metadata.has_conflict:
        return _BORDER_CONFLICT
    if rn.node.metadata.is_bottleneck:
        return _BORDER_BOTTLENECK
    return _BORDER_DEFAULT


def build_plotly_figure(scene: RenderScene, title: str = "Organisation Knowledge Graph") -> go.Figure:
    """
    Build a Plotly figure from a RenderScene.

    Args:
        scene: Output of GraphView.scene().
        title: Figure title.

    Returns:
        Plotly Figure object (no IO). An empty scene yields an empty canvas
        with the same axes, not an error.
    """
    # ── Edge traces grouped by tier ──────────────────────────────────────────
    edge_traces = []
    for tier in (EdgeTier.BACKGROUND, EdgeTier.CONNECTED, EdgeTier.ACTIVE):
        edges = [e for e in scene.edges if e.tier is tier]
        if not edges:
            continue
        x_coords: list = []
        y_coords: list = []
        for e in edges:
            x0, y0 = scene.to_screen(e.x0, e.y0)
            x1, y1 = scene.to_screen(e.x1, e.y1)
            x_coords += [x0, x1, None]
            y_coords += [y0, y1, None]
        edge_traces.append(go.Scatter(
            x=x_coords,
            y=y_coords,
            mode="lines",
            line={"width": edges[0].width, "color": f"rgba({_EDGE_COLORS[tier]}, {edges[0].opacity})"},
            name=f"{tier.value} edges",
            legendgroup=f"edge_{tier.value}",
            showlegend=False,
            hoverinfo="none",
        ))

    # ── Node traces grouped by kind ──────────────────────────────────────────
    node_traces = []
    for kind in EntityKind:
        nodes = [n for n in scene.nodes if n.kind is kind]
        if not nodes:
            continue
        node_traces.append(go.Scatter(
            x=[n.screen_x for n in nodes],
            y=[n.screen_y for n in nodes],
            mode="markers+text",
            name=kind.label,
            marker={
                "size": [2 * n.radius * scene.zoom for n in nodes],
                "color": kind.color,
                "opacity": [n.opacity for n in nodes],
                "line": {"color": [_border(n) for n in nodes], "width": 2},
            },
            text=[n.label for n in nodes],
            textposition="bottom center",
            hovertext=[_hover_text(n) for n in nodes],
            hovertemplate="%{hovertext}<extra></extra>",
            customdata=[n.id for n in nodes],
            legendgroup=f"node_{kind.value}",
            showlegend=True,
        ))

    all_traces = edge_traces + node_traces
    fig = go.Figure(
        data=all_traces,
        layout=go.Layout(
            title=title,
            width=int(scene.width) or None,
            height=int(scene.height) or None,
            showlegend=True,
            hovermode="closest",
            xaxis={"range": [0, scene.width], "showgrid": False, "zeroline": False, "showticklabels": False},
            yaxis={"range": [scene.height, 0], "showgrid": False, "zeroline": False, "showticklabels": False},
            margin={"l": 20, "r": 20, "t": 60, "b": 20},
            paper_bgcolor="white",
            plot_bgcolor="white",
        ),
    )

    logger.info(
        "Plotly figure built: %d nodes, %d edges, %d traces.",
        len(scene.nodes),
        len(scene.edges),
        len(all_traces),
    )
    return fig


def save_figure_html(fig: go.Figure, output_path: str) -> None:
    """Write a Plotly figure to a self-contained HTML file (plotly.js from CDN)."""
    fig.write_html(output_path, include_plotlyjs="cdn")
    logger.info("Plotly figure saved to: %s", output_path)
