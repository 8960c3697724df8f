"""
org_atlas/graph/neighborhood.py — Bounded-depth neighborhood expansion.

Computes the "connected to X" sets behind the focus filter and the team-scope
filter. The organisation graph is cyclic (people own decisions that reference
topics their own team works on), so the visited-set guard below is what
guarantees termination, not the depth cap alone.

A hop counts an edge in either declared direction: "A lists B" and "B lists A"
are both one hop between A and B. Both directions come from the snapshot's
undirected adjacency index, built once per snapshot.
"""

import logging

from org_atlas.graph.model import GraphSnapshot

logger = logging.getLogger(__name__)


def expand_neighborhood(
    snapshot: GraphSnapshot,
    start_id: str,
    max_depth: int,
) -> set[str]:
    """
    Return every node id reachable from start_id within max_depth hops.

    Algorithm (iterative breadth-first, O(V + E) with the adjacency index):
        1. visited = {start_id}; frontier = [start_id].
        2. For each depth level up to max_depth, collect the undirected
           neighbors of every frontier id that are not yet visited; they
           become the next frontier.
        3. Stop early when a level discovers nothing new.

    Args:
        snapshot:  Full GraphSnapshot (never a filtered view — neighborhoods
                   must follow true graph adjacency).
        start_id:  Node id to expand from.
        max_depth: Hop budget. 0 returns {start_id}; negative is treated as 0.

    Returns:
        Set of reachable ids, always including start_id. An id that is not in
        the snapshot has no neighbors and expands to {start_id}.
    """
    visited: set[str] = {start_id}
    frontier: list[str] = [start_id]

    for _ in range(max(0, max_depth)):
        discovered: list[str] = []
        for node_id in frontier:
            for neighbor in snapshot.neighbors(node_id):
                if neighbor not in visited:
                    visited.add(neighbor)
                    discovered.append(neighbor)
        if not discovered:
            break
        frontier = discovered

    logger.debug(
        "Expanded %r to depth %d: %d node(s).", start_id, max_depth, len(visited)
    )
    return visited
