"""
org_atlas.viz — Renderers for a RenderScene.

Modules:
    plotly_graph  — Interactive Plotly figure (HTML export).
    figures       — Static matplotlib PNG.

Both consume org_atlas.view.RenderScene and draw nothing the scene does not
already decide (positions, opacity, tiers, radii).
"""
