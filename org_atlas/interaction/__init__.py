"""
org_atlas.interaction — Render-time view state layered over the layout.

Modules:
    viewport   — Pan/zoom transform. Never touches layout coordinates.
    highlight  — Hover/selection state, highlight tiers, tooltip placement.
"""
