"""
org_atlas/graph/builder.py — GraphSnapshot construction from entity records.

The data layer stores people, teams, topics, decisions and documents as
separate tables, with relationships in a graph_edges table and open disputes
in a conflicts table. This module folds those records into the node-local
adjacency form the engine consumes:

    person    → declares its team (team_id)
    team      → declares its lead (lead_person_id)
    decision  → declares its owner (owner_person_id)
    document  → declares its owner (owner_person_id)
    graph edge (from → to) → appended to the from-node's connections

Conflict flags come from two sources: open conflict records on an entity, and
'contradicts' graph edges (both endpoints are flagged).

Sources supported:
    - in-memory record lists          build_snapshot_from_records()
    - a JSON snapshot file            load_snapshot_json() / save_snapshot_json()
    - a directory of entity CSVs      load_snapshot_from_tables()
"""

import json
import logging
import os
from typing import Any, Iterable, Optional

import pandas as pd

from org_atlas.graph.model import (
    EntityKind,
    GraphNode,
    GraphSnapshot,
    NodeMetadata,
    NodeStatus,
)

logger = logging.getLogger(__name__)

# Decision lifecycle in the data layer → node status shown on the canvas.
_DECISION_STATUS = {
    "proposed": NodeStatus.PENDING,
    "confirmed": NodeStatus.ACTIVE,
    "deprecated": NodeStatus.RESOLVED,
}

_TABLE_FILES = {
    "persons": "persons.csv",
    "teams": "teams.csv",
    "topics": "topics.csv",
    "decisions": "decisions.csv",
    "documents": "documents.csv",
    "graph_edges": "graph_edges.csv",
    "conflicts": "conflicts.csv",
}


def _clean(value: Any) -> Any:
    """Map pandas/JSON empties (NaN, None, '') to None."""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _as_bool(value: Any) -> bool:
    value = _clean(value)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


class _NodeDraft:
    """Mutable accumulator for one node while the tables are folded together."""

    __slots__ = ("id", "label", "kind", "connections", "meta")

    def __init__(self, node_id: str, label: str, kind: EntityKind, **meta):
        self.id = node_id
        self.label = label
        self.kind = kind
        self.connections: list[str] = []
        self.meta: dict[str, Any] = {k: v for k, v in meta.items() if v is not None}

    def connect(self, target: Optional[str]) -> bool:
        if target is None or target == self.id or target in self.connections:
            return False
        self.connections.append(target)
        return True

    def freeze(self) -> GraphNode:
        return GraphNode(
            id=self.id,
            label=self.label,
            kind=self.kind,
            connections=tuple(self.connections),
            metadata=NodeMetadata.from_dict(self.meta),
        )


def build_snapshot_from_records(
    persons: Iterable[dict] = (),
    teams: Iterable[dict] = (),
    topics: Iterable[dict] = (),
    decisions: Iterable[dict] = (),
    documents: Iterable[dict] = (),
    graph_edges: Iterable[dict] = (),
    conflicts: Iterable[dict] = (),
) -> GraphSnapshot:
    """
    Fold entity, edge and conflict records into a GraphSnapshot.

    Args:
        persons:     {id, name, role, team_id, load_score, is_bottleneck?}
        teams:       {id, name, description, lead_person_id}
        topics:      {id, name, description}
        decisions:   {id, title, canonical_text, status, owner_person_id, confidence}
        documents:   {id, title, content, owner_person_id}
        graph_edges: {from_entity_id, to_entity_id, edge_type}
        conflicts:   {entity_id, status}

    Returns:
        GraphSnapshot with nodes ordered persons, teams, topics, decisions,
        documents (record order preserved within each table).

    Raises:
        GraphSnapshotError: if two records share an id.

    Notes:
        - Records without an id are skipped with a WARNING.
        - Edge records whose endpoints are unknown are kept as declared
          connections; the snapshot drops them from its adjacency index.
        - is_bottleneck is only taken from an explicit record flag. Overload
          by load score is decided by the bottleneck filter's threshold.
    """
    drafts: dict[str, _NodeDraft] = {}

    def add(draft: _NodeDraft, record: dict) -> _NodeDraft:
        if draft.id in drafts:
            # Leave the duplicate to GraphSnapshot so the error is raised in one place.
            drafts[f"{draft.id}\x00{len(drafts)}"] = draft
        else:
            drafts[draft.id] = draft
        if _as_bool(record.get("is_bottleneck")):
            draft.meta["is_bottleneck"] = True
        return draft

    def record_id(record: dict, table: str) -> Optional[str]:
        rid = _clean(record.get("id"))
        if rid is None:
            logger.warning("Skipping %s record without an id: %r", table, record)
            return None
        return str(rid)

    for r in persons:
        rid = record_id(r, "person")
        if rid is None:
            continue
        draft = add(_NodeDraft(
            rid, str(_clean(r.get("name")) or rid), EntityKind.PERSON,
            role=_clean(r.get("role")),
            load_score=_clean(r.get("load_score")),
            updated_at=_clean(r.get("updated_at")),
        ), r)
        draft.connect(_clean(r.get("team_id")))

    for r in teams:
        rid = record_id(r, "team")
        if rid is None:
            continue
        draft = add(_NodeDraft(
            rid, str(_clean(r.get("name")) or rid), EntityKind.TEAM,
            description=_clean(r.get("description")),
            updated_at=_clean(r.get("updated_at")),
        ), r)
        draft.connect(_clean(r.get("lead_person_id")))

    for r in topics:
        rid = record_id(r, "topic")
        if rid is None:
            continue
        add(_NodeDraft(
            rid, str(_clean(r.get("name")) or rid), EntityKind.TOPIC,
            description=_clean(r.get("description")),
            updated_at=_clean(r.get("updated_at")),
        ), r)

    for r in decisions:
        rid = record_id(r, "decision")
        if rid is None:
            continue
        raw_status = _clean(r.get("status"))
        status = _DECISION_STATUS.get(str(raw_status).lower()) if raw_status else None
        if raw_status and status is None:
            logger.warning("Decision %s has unknown status %r — left unset.", rid, raw_status)
        draft = add(_NodeDraft(
            rid, str(_clean(r.get("title")) or rid), EntityKind.DECISION,
            description=_clean(r.get("canonical_text")),
            confidence=_clean(r.get("confidence")),
            status=status.value if status else None,
            updated_at=_clean(r.get("updated_at")),
        ), r)
        draft.connect(_clean(r.get("owner_person_id")))

    for r in documents:
        rid = record_id(r, "document")
        if rid is None:
            continue
        draft = add(_NodeDraft(
            rid, str(_clean(r.get("title")) or rid), EntityKind.DOCUMENT,
            description=_clean(r.get("content")),
            updated_at=_clean(r.get("updated_at")),
        ), r)
        draft.connect(_clean(r.get("owner_person_id")))

    # ── Graph edges ──────────────────────────────────────────────────────────
    added_edges = 0
    for r in graph_edges:
        source = _clean(r.get("from_entity_id"))
        target = _clean(r.get("to_entity_id"))
        if source is None or target is None:
            logger.warning("Skipping graph edge with a missing endpoint: %r", r)
            continue
        source, target = str(source), str(target)
        draft = drafts.get(source)
        if draft is None:
            logger.warning("Graph edge from unknown entity %r — skipped.", source)
            continue
        if source == target:
            logger.warning("Self-referencing graph edge on %s skipped.", source)
        elif draft.connect(target):
            added_edges += 1
        else:
            logger.warning("Duplicate graph edge %s → %s skipped.", source, target)

        if str(_clean(r.get("edge_type")) or "").lower() == "contradicts":
            for endpoint in (source, target):
                if endpoint in drafts:
                    drafts[endpoint].meta["has_conflict"] = True

    # ── Conflicts ────────────────────────────────────────────────────────────
    open_conflicts = 0
    for r in conflicts:
        if str(_clean(r.get("status")) or "open").lower() != "open":
            continue
        entity_id = _clean(r.get("entity_id"))
        if entity_id is None or str(entity_id) not in drafts:
            logger.warning("Conflict on unknown entity %r — skipped.", entity_id)
            continue
        drafts[str(entity_id)].meta["has_conflict"] = True
        open_conflicts += 1

    snapshot = GraphSnapshot(d.freeze() for d in drafts.values())
    logger.info(
        "Snapshot built: %d nodes, %d graph-edge connections, %d open conflicts.",
        len(snapshot),
        added_edges,
        open_conflicts,
    )
    return snapshot


# ── File sources ─────────────────────────────────────────────────────────────


def load_snapshot_json(path: str) -> GraphSnapshot:
    """
    Load a snapshot from a JSON file.

    Accepts either {"nodes": [...]} or a bare list of node records. A file
    with entity tables ({"persons": [...], "teams": [...], ...}) is routed
    through build_snapshot_from_records().

    Raises:
        OSError, json.JSONDecodeError, GraphSnapshotError.
    """
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)

    if isinstance(payload, list):
        snapshot = GraphSnapshot.from_dicts(payload)
    elif "nodes" in payload:
        snapshot = GraphSnapshot.from_dicts(payload["nodes"])
    else:
        tables = {k: payload.get(k) or [] for k in _TABLE_FILES}
        snapshot = build_snapshot_from_records(**tables)

    logger.info("Loaded snapshot from %s: %d nodes.", path, len(snapshot))
    return snapshot


def save_snapshot_json(snapshot: GraphSnapshot, path: str) -> None:
    """Write a snapshot as {"nodes": [...]} JSON."""
    with open(path, "w", encoding="utf-8") as fh:
        json.dump({"nodes": snapshot.to_dicts()}, fh, indent=2)
    logger.info("Snapshot written to: %s", path)


def load_snapshot_from_tables(directory: str) -> GraphSnapshot:
    """
    Build a snapshot from a directory of entity CSV tables.

    Reads persons.csv, teams.csv, topics.csv, decisions.csv, documents.csv,
    graph_edges.csv and conflicts.csv. Any table may be absent; ids are read
    as strings so '007' stays '007'.
    """
    tables: dict[str, list[dict]] = {}
    for key, filename in _TABLE_FILES.items():
        path = os.path.join(directory, filename)
        if not os.path.isfile(path):
            logger.debug("Table %s not found — treated as empty.", path)
            tables[key] = []
            continue
        df = pd.read_csv(
            path,
            dtype={
                "id": str, "team_id": str, "lead_person_id": str,
                "owner_person_id": str, "from_entity_id": str,
                "to_entity_id": str, "entity_id": str,
            },
        )
        tables[key] = df.to_dict(orient="records")
        logger.debug("Loaded %d row(s) from %s.", len(df), path)

    return build_snapshot_from_records(**tables)


def load_snapshot(path: str) -> GraphSnapshot:
    """Load a snapshot from a JSON file or a directory of CSV tables."""
    if os.path.isdir(path):
        return load_snapshot_from_tables(path)
    return load_snapshot_json(path)
