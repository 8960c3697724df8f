"""
org_atlas/demo.py — Built-in demo organisation.

A small but complete organisation (5 teams, 8 people, 5 topics, 6 decisions,
3 documents) with graph edges, one contradiction and open conflicts, so every
filter has something to show. Used by `org-atlas demo` and by the tests.
"""

import logging

from org_atlas.graph.builder import build_snapshot_from_records
from org_atlas.graph.model import GraphSnapshot

logger = logging.getLogger(__name__)

DEMO_TEAMS = [
    {"id": "team-1", "name": "Engineering", "lead_person_id": "person-1", "description": "Core product development"},
    {"id": "team-2", "name": "Product", "lead_person_id": "person-2", "description": "Product strategy and roadmap"},
    {"id": "team-3", "name": "Design", "lead_person_id": "person-3", "description": "UX and visual design"},
    {"id": "team-4", "name": "Marketing", "lead_person_id": "person-4", "description": "Growth and brand"},
    {"id": "team-5", "name": "Sales", "lead_person_id": "person-5", "description": "Revenue and partnerships"},
]

DEMO_PERSONS = [
    {"id": "person-1", "name": "Sarah Chen", "role": "VP Engineering", "team_id": "team-1", "load_score": 85},
    {"id": "person-2", "name": "Marcus Johnson", "role": "Head of Product", "team_id": "team-2", "load_score": 72},
    {"id": "person-3", "name": "Emily Rodriguez", "role": "Design Director", "team_id": "team-3", "load_score": 45},
    {"id": "person-4", "name": "David Kim", "role": "CMO", "team_id": "team-4", "load_score": 92},
    {"id": "person-5", "name": "Lisa Thompson", "role": "VP Sales", "team_id": "team-5", "load_score": 68},
    {"id": "person-6", "name": "James Wilson", "role": "Senior Engineer", "team_id": "team-1", "load_score": 55},
    {"id": "person-7", "name": "Ana Martinez", "role": "Product Manager", "team_id": "team-2", "load_score": 78},
    {"id": "person-8", "name": "Nathaniel Velazquez", "role": "CEO", "team_id": None, "load_score": 95,
     "is_bottleneck": True},
]

DEMO_TOPICS = [
    {"id": "topic-1", "name": "Q1 Launch", "description": "Product launch for Q1"},
    {"id": "topic-2", "name": "AI Integration", "description": "Integrating AI capabilities into core product"},
    {"id": "topic-3", "name": "Enterprise Sales", "description": "Enterprise sales strategy and pipeline"},
    {"id": "topic-4", "name": "User Onboarding", "description": "Improving user onboarding experience"},
    {"id": "topic-5", "name": "Infrastructure", "description": "Platform infrastructure and scalability"},
]

DEMO_DECISIONS = [
    {"id": "decision-1", "title": "Adopt Next.js for frontend rewrite", "status": "confirmed",
     "owner_person_id": "person-1", "confidence": 0.92,
     "canonical_text": "Migrate the frontend to Next.js to improve performance and SEO."},
    {"id": "decision-2", "title": "Launch date pushed to March 15", "status": "proposed",
     "owner_person_id": "person-2", "confidence": 0.75,
     "canonical_text": "The Q1 launch moves to March 15 for additional security testing."},
    {"id": "decision-3", "title": "Use one primary AI provider", "status": "confirmed",
     "owner_person_id": "person-1", "confidence": 0.88,
     "canonical_text": "Standardise AI features on a single provider with enterprise support."},
    {"id": "decision-4", "title": "Pricing tier restructure", "status": "proposed",
     "owner_person_id": "person-5", "confidence": 0.65,
     "canonical_text": "Restructure pricing from 3 tiers to 4, adding Enterprise Plus."},
    {"id": "decision-5", "title": "Deprecate legacy API v1", "status": "confirmed",
     "owner_person_id": "person-1", "confidence": 0.95,
     "canonical_text": "API v1 is deprecated; all clients migrate to v2."},
    {"id": "decision-6", "title": "Hire 5 additional engineers", "status": "deprecated",
     "owner_person_id": "person-8", "confidence": 0.50,
     "canonical_text": "Expand engineering by 5 senior engineers."},
]

DEMO_DOCUMENTS = [
    {"id": "doc-1", "title": "Q1 Launch Plan", "content": "Detailed launch plan for Q1", "owner_person_id": "person-2"},
    {"id": "doc-2", "title": "API Migration Guide", "content": "Migrating from API v1 to v2", "owner_person_id": "person-1"},
    {"id": "doc-3", "title": "Enterprise Security Requirements", "content": "Security requirements for enterprise clients",
     "owner_person_id": "person-1"},
]

DEMO_GRAPH_EDGES = [
    {"from_entity_id": "person-1", "to_entity_id": "person-2", "edge_type": "communicates_with"},
    {"from_entity_id": "person-2", "to_entity_id": "person-4", "edge_type": "communicates_with"},
    {"from_entity_id": "person-8", "to_entity_id": "person-1", "edge_type": "communicates_with"},
    {"from_entity_id": "team-2", "to_entity_id": "team-1", "edge_type": "depends_on"},
    {"from_entity_id": "team-4", "to_entity_id": "team-2", "edge_type": "depends_on"},
    {"from_entity_id": "decision-1", "to_entity_id": "topic-2", "edge_type": "references"},
    {"from_entity_id": "decision-2", "to_entity_id": "topic-1", "edge_type": "references"},
    {"from_entity_id": "decision-3", "to_entity_id": "topic-2", "edge_type": "references"},
    {"from_entity_id": "decision-4", "to_entity_id": "topic-3", "edge_type": "references"},
    {"from_entity_id": "decision-5", "to_entity_id": "topic-5", "edge_type": "references"},
    {"from_entity_id": "doc-1", "to_entity_id": "topic-1", "edge_type": "references"},
    {"from_entity_id": "doc-2", "to_entity_id": "decision-5", "edge_type": "references"},
    {"from_entity_id": "doc-3", "to_entity_id": "topic-3", "edge_type": "references"},
    {"from_entity_id": "topic-4", "to_entity_id": "team-3", "edge_type": "references"},
    {"from_entity_id": "decision-2", "to_entity_id": "decision-4", "edge_type": "contradicts"},
]

DEMO_CONFLICTS = [
    {"entity_id": "decision-2", "status": "open",
     "description": "Marketing says the February date is locked; Engineering needs March."},
    {"entity_id": "person-4", "status": "open",
     "description": "Overloaded stakeholder: three teams requesting time simultaneously."},
    {"entity_id": "decision-6", "status": "resolved", "description": "Hiring budget dispute."},
]


def build_demo_snapshot() -> GraphSnapshot:
    """Return the demo organisation as a GraphSnapshot."""
    return build_snapshot_from_records(
        persons=DEMO_PERSONS,
        teams=DEMO_TEAMS,
        topics=DEMO_TOPICS,
        decisions=DEMO_DECISIONS,
        documents=DEMO_DOCUMENTS,
        graph_edges=DEMO_GRAPH_EDGES,
        conflicts=DEMO_CONFLICTS,
    )
