"""
org_atlas.graph — Snapshot model, traversal and filtering layer.

Modules:
    model         — GraphNode / Edge records, GraphSnapshot with its undirected
                    adjacency index, edge materialisation.
    neighborhood  — Bounded-depth breadth-first expansion.
    filters       — FilterConfig and the ordered filter pipeline.
    builder       — Snapshot construction from entity tables, JSON or CSV.

Node kinds : person, team, decision, topic, document
Edges      : undirected, derived from node-local `connections` declarations
"""
