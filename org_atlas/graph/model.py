"""
org_atlas/graph/model.py — Typed node/edge records and the graph snapshot.

A GraphSnapshot is the whole organisation graph as supplied by the data layer:
an immutable tuple of GraphNode records, each declaring its neighbors
node-locally. Declarations are asymmetric in places (A lists B without B
listing A), yet every consumer treats the relation as undirected. The snapshot
therefore derives an undirected adjacency index once, at construction, instead
of re-scanning the node list on every traversal step.

Node records carry no layout state. Positions and velocities are owned by the
layout engine (org_atlas.layout.engine.LayoutSnapshot).

JSON snapshot format (see to_dicts / from_dicts):
    {"nodes": [{"id": "person-1", "label": "Sarah Chen", "type": "person",
                "connections": ["team-1"], "metadata": {"role": "CEO"}}]}
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

import networkx as nx

logger = logging.getLogger(__name__)


class GraphSnapshotError(ValueError):
    """Raised when a snapshot violates a model invariant (e.g. duplicate ids)."""


class EntityKind(str, Enum):
    PERSON = "person"
    TEAM = "team"
    DECISION = "decision"
    TOPIC = "topic"
    DOCUMENT = "document"

    @property
    def label(self) -> str:
        return KIND_LABELS[self]

    @property
    def color(self) -> str:
        return KIND_COLORS[self]


class NodeStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    RESOLVED = "resolved"


KIND_LABELS = {
    EntityKind.PERSON: "People",
    EntityKind.TEAM: "Teams",
    EntityKind.DECISION: "Decisions",
    EntityKind.TOPIC: "Topics",
    EntityKind.DOCUMENT: "Documents",
}

KIND_COLORS = {
    EntityKind.PERSON: "#3B82F6",
    EntityKind.TEAM: "#A855F7",
    EntityKind.DECISION: "#22C55E",
    EntityKind.TOPIC: "#F59E0B",
    EntityKind.DOCUMENT: "#06B6D4",
}

STATUS_COLORS = {
    NodeStatus.ACTIVE: "#22C55E",
    NodeStatus.PENDING: "#F59E0B",
    NodeStatus.RESOLVED: "#94A3B8",
}

# camelCase keys emitted by the web client, mapped to metadata field names.
_METADATA_ALIASES = {
    "loadScore": "load_score",
    "hasConflict": "has_conflict",
    "isBottleneck": "is_bottleneck",
    "updatedAt": "updated_at",
}


def parse_kind(value: Any) -> EntityKind:
    """Coerce a string (or EntityKind) to EntityKind, raising GraphSnapshotError."""
    if isinstance(value, EntityKind):
        return value
    try:
        return EntityKind(str(value).strip().lower())
    except ValueError:
        raise GraphSnapshotError(
            f"Unknown entity kind {value!r}; expected one of "
            f"{', '.join(k.value for k in EntityKind)}."
        ) from None


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class NodeMetadata:
    """
    Optional descriptive bag attached to a node.

    Fields:
        role:          Role label for people ('CEO', 'VP Engineering', ...).
        status:        Lifecycle status, or None.
        load_score:    Workload 0–100, or None.
        confidence:    Confidence 0–1 (decisions), or None.
        description:   Free text.
        has_conflict:  Node is party to an open conflict.
        is_bottleneck: Node was explicitly flagged as a bottleneck.
        updated_at:    ISO timestamp carried through for display only.
    """

    role: Optional[str] = None
    status: Optional[NodeStatus] = None
    load_score: Optional[float] = None
    confidence: Optional[float] = None
    description: Optional[str] = None
    has_conflict: bool = False
    is_bottleneck: bool = False
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "NodeMetadata":
        """Build metadata from a JSON-style dict; clamps scores to their ranges."""
        if not data:
            return cls()
        values = {_METADATA_ALIASES.get(k, k): v for k, v in data.items()}

        status = values.get("status")
        if status is not None and not isinstance(status, NodeStatus):
            try:
                status = NodeStatus(str(status).lower())
            except ValueError:
                raise GraphSnapshotError(f"Unknown node status {status!r}.") from None

        load = values.get("load_score")
        confidence = values.get("confidence")
        return cls(
            role=values.get("role"),
            status=status,
            load_score=_clamp(float(load), 0.0, 100.0) if load is not None else None,
            confidence=_clamp(float(confidence), 0.0, 1.0) if confidence is not None else None,
            description=values.get("description"),
            has_conflict=bool(values.get("has_conflict", False)),
            is_bottleneck=bool(values.get("is_bottleneck", False)),
            updated_at=values.get("updated_at"),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        for key in ("role", "load_score", "confidence", "description", "updated_at"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.status is not None:
            out["status"] = self.status.value
        if self.has_conflict:
            out["has_conflict"] = True
        if self.is_bottleneck:
            out["is_bottleneck"] = True
        return out


@dataclass(frozen=True)
class GraphNode:
    """
    One entity in the organisation graph.

    Fields:
        id:          Unique, stable identifier within a snapshot.
        label:       Display label.
        kind:        EntityKind (strings are coerced).
        connections: Declared neighbor ids. Order matters for focus seeding.
        metadata:    NodeMetadata bag (defaults to an empty one).
    """

    id: str
    label: str
    kind: EntityKind
    connections: tuple[str, ...] = ()
    metadata: NodeMetadata = field(default_factory=NodeMetadata)

    def __post_init__(self):
        object.__setattr__(self, "kind", parse_kind(self.kind))
        object.__setattr__(self, "connections", tuple(self.connections))
        if self.metadata is None:
            object.__setattr__(self, "metadata", NodeMetadata())

    @classmethod
    def from_dict(cls, data: dict) -> "GraphNode":
        if "id" not in data:
            raise GraphSnapshotError(f"Node record without an 'id': {data!r}")
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", data["id"])),
            kind=data.get("type", data.get("kind")),
            connections=tuple(str(c) for c in data.get("connections") or ()),
            metadata=NodeMetadata.from_dict(data.get("metadata")),
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "label": self.label,
            "type": self.kind.value,
            "connections": list(self.connections),
        }
        metadata = self.metadata.to_dict()
        if metadata:
            out["metadata"] = metadata
        return out


@dataclass(frozen=True, order=True)
class Edge:
    """
    Undirected edge between two visible nodes, endpoints sorted (source <= target).

    Construct via Edge.between() so that A–B and B–A produce the same record.
    """

    source: str
    target: str

    @classmethod
    def between(cls, a: str, b: str) -> "Edge":
        return cls(a, b) if a <= b else cls(b, a)

    @property
    def key(self) -> str:
        return f"{self.source}|{self.target}"

    def touches(self, node_id: str) -> bool:
        return node_id == self.source or node_id == self.target


class GraphSnapshot:
    """
    Immutable whole-graph snapshot plus its derived undirected adjacency index.

    The index is a networkx.Graph holding every node (with kind/label
    attributes) and one edge per unordered pair that either endpoint declares.
    References to ids outside the snapshot and self-references are dropped
    from the index with a WARNING; they are still visible in the node's raw
    `connections` tuple.

    Raises:
        GraphSnapshotError: if two nodes share an id.
    """

    def __init__(self, nodes: Iterable[GraphNode] = ()):
        self._nodes: tuple[GraphNode, ...] = tuple(nodes)
        self._by_id: dict[str, GraphNode] = {}
        for node in self._nodes:
            if node.id in self._by_id:
                raise GraphSnapshotError(f"Duplicate node id {node.id!r} in snapshot.")
            self._by_id[node.id] = node
        self._index = self._build_index()

    def _build_index(self) -> nx.Graph:
        index = nx.Graph()
        for node in self._nodes:
            index.add_node(node.id, kind=node.kind.value, label=node.label)

        dangling = 0
        for node in self._nodes:
            for target in node.connections:
                if target == node.id:
                    continue
                if target not in self._by_id:
                    dangling += 1
                    logger.debug("Dangling reference %s → %s ignored.", node.id, target)
                    continue
                index.add_edge(node.id, target)

        if dangling:
            logger.warning(
                "Snapshot has %d adjacency reference(s) to unknown node ids — ignored.",
                dangling,
            )
        return index

    # ── Container protocol ───────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def __repr__(self) -> str:
        return (
            f"GraphSnapshot(nodes={len(self._nodes)}, "
            f"edges={self._index.number_of_edges()})"
        )

    @property
    def nodes(self) -> tuple[GraphNode, ...]:
        return self._nodes

    def ids(self) -> list[str]:
        return [n.id for n in self._nodes]

    def node(self, node_id: str) -> Optional[GraphNode]:
        return self._by_id.get(node_id)

    # ── Adjacency queries ────────────────────────────────────────────────────

    def declared_neighbors(self, node_id: str) -> tuple[str, ...]:
        """Neighbor ids as declared by the node itself (may include dangling ids)."""
        node = self._by_id.get(node_id)
        return node.connections if node is not None else ()

    def neighbors(self, node_id: str) -> set[str]:
        """Undirected neighbors: ids the node declares plus ids that declare it."""
        if node_id not in self._index:
            return set()
        return set(self._index.adj[node_id])

    def degree(self, node_id: str) -> int:
        return self._index.degree(node_id) if node_id in self._index else 0

    def edges(self) -> list[Edge]:
        """Every undirected edge of the snapshot, sorted by key."""
        return sorted(Edge.between(u, v) for u, v in self._index.edges())

    def to_networkx(self) -> nx.Graph:
        """Return a copy of the undirected adjacency index with node metadata attached."""
        G = self._index.copy()
        for node in self._nodes:
            G.nodes[node.id].update(node.metadata.to_dict())
        return G

    # ── Serialisation ────────────────────────────────────────────────────────

    @classmethod
    def from_dicts(cls, records: Iterable[dict]) -> "GraphSnapshot":
        return cls(GraphNode.from_dict(r) for r in records)

    def to_dicts(self) -> list[dict]:
        return [n.to_dict() for n in self._nodes]


def materialize_edges(snapshot: GraphSnapshot, visible_ids: Iterable[str]) -> list[Edge]:
    """
    Materialize the deduplicated edge set between visible nodes.

    An edge appears once per unordered pair, however many of its endpoints
    declare it, and only when both endpoints are visible. Dangling references
    and references to filtered-out nodes never produce partial edges.

    Returns:
        Edges sorted by (source, target) for deterministic rendering.
    """
    visible = set(visible_ids)
    seen: dict[str, Edge] = {}
    for node_id in visible:
        node = snapshot.node(node_id)
        if node is None:
            continue
        for target in node.connections:
            if target == node_id or target not in visible or target not in snapshot:
                continue
            edge = Edge.between(node_id, target)
            seen.setdefault(edge.key, edge)
    return sorted(seen.values())


@dataclass
class NodeSummary:
    """Inspector summary for the host's detail view of one node."""

    id: str
    label: str
    kind: EntityKind
    kind_label: str
    role: Optional[str]
    status: Optional[NodeStatus]
    load_score: Optional[float]
    confidence: Optional[float]
    description: Optional[str]
    connection_count: int
    has_conflict: bool
    is_bottleneck: bool


def describe_node(snapshot: GraphSnapshot, node_id: str) -> Optional[NodeSummary]:
    """Summarise a node for display, or None if the id is not in the snapshot."""
    node = snapshot.node(node_id)
    if node is None:
        return None
    meta = node.metadata
    return NodeSummary(
        id=node.id,
        label=node.label,
        kind=node.kind,
        kind_label=node.kind.label,
        role=meta.role,
        status=meta.status,
        load_score=meta.load_score,
        confidence=meta.confidence,
        description=meta.description,
        connection_count=snapshot.degree(node.id),
        has_conflict=meta.has_conflict,
        is_bottleneck=meta.is_bottleneck,
    )
