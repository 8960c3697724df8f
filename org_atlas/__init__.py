"""
org_atlas — Layout, filtering and interaction engine for the organisation
knowledge graph.

The organisation graph (people, teams, decisions, topics, documents) arrives
as a whole snapshot from the data layer. This package turns it into
positioned, styled, interactive geometry:

    Graph Model → Filter Pipeline → Layout Engine → (Viewport ⊗ Interaction)

Subpackages:
- org_atlas.graph        — snapshot model, neighborhood expansion, filters, builder
- org_atlas.layout       — force-directed layout engine and frame schedulers
- org_atlas.interaction  — pan/zoom viewport and hover/selection highlighting
- org_atlas.viz          — Plotly and matplotlib renderers for a RenderScene
"""

__version__ = "0.1.0"
