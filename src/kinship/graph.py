"""Adjacency building and NetworkX graph views."""

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

import networkx as nx

from kinship.models import (
    ANCESTRY_TYPES,
    DISSOLVED_STATUSES,
    FOSTER_PARENT,
    MARRIAGE_STATUSES,
    PersonId,
    Person,
    RelationshipEdge,
    Snapshot,
    SpouseEdge,
    TwinEdge,
    ParentEdge,
    sortable_date,
)

logger = logging.getLogger(__name__)

STATUS_RANK = {status: rank for rank, status in enumerate(MARRIAGE_STATUSES)}


@dataclass
class Adjacency:
    """Derived lookup maps for one snapshot. Rebuilt per computation."""

    parent_map: dict[PersonId, list[PersonId]] = field(default_factory=dict)
    children_map: dict[PersonId, list[PersonId]] = field(default_factory=dict)
    spouse_map: dict[PersonId, PersonId] = field(default_factory=dict)
    # Every recorded partner, dissolved marriages included
    spouses_of: dict[PersonId, list[PersonId]] = field(default_factory=dict)
    twins_of: dict[PersonId, set[PersonId]] = field(default_factory=dict)
    foster_parent_map: dict[PersonId, list[PersonId]] = field(default_factory=dict)
    foster_children_map: dict[PersonId, list[PersonId]] = field(default_factory=dict)

    def parents(self, person_id: PersonId) -> list[PersonId]:
        return self.parent_map.get(person_id, [])

    def children(self, person_id: PersonId) -> list[PersonId]:
        return self.children_map.get(person_id, [])

    def spouse(self, person_id: PersonId) -> PersonId | None:
        return self.spouse_map.get(person_id)


def _append_unique(mapping: dict, key, value):
    values = mapping.setdefault(key, [])
    if value not in values:
        values.append(value)


def _pick_current_spouses(candidates: list[tuple[int, SpouseEdge]]) -> dict[PersonId, PersonId]:
    """
    Choose at most one current spouse per person.

    Marriages are ranked by status (married, widowed, betrothed, divorced),
    then by most recent marriage date (undated last), then by later edge
    order, and assigned greedily so the resulting map is symmetric.
    """
    ranked = sorted(candidates, key=lambda c: c[0], reverse=True)
    ranked.sort(key=lambda c: sortable_date(c[1].marriage_date) or "", reverse=True)
    ranked.sort(key=lambda c: STATUS_RANK.get(c[1].marriage_status, len(STATUS_RANK)))

    spouse_map: dict[PersonId, PersonId] = {}
    for _, edge in ranked:
        a, b = edge.person1_id, edge.person2_id
        if a in spouse_map or b in spouse_map:
            continue
        spouse_map[a] = b
        spouse_map[b] = a
    return spouse_map


def build_adjacency(
    people: Iterable[Person],
    edges: Iterable[RelationshipEdge],
    exclude_dissolved: bool = True,
) -> Adjacency:
    """
    Turn a flat list of relationship edges into adjacency maps.

    Edges referencing people outside `people` are skipped here; the
    validator reports them as orphans.
    """
    person_ids = {p.id for p in people}
    adjacency = Adjacency()
    spouse_candidates: list[tuple[int, SpouseEdge]] = []
    skipped = 0

    for index, edge in enumerate(edges):
        a, b = edge.person1_id, edge.person2_id
        if a not in person_ids or b not in person_ids:
            skipped += 1
            continue

        if isinstance(edge, ParentEdge):
            if edge.relationship_type in ANCESTRY_TYPES:
                _append_unique(adjacency.parent_map, b, a)
                _append_unique(adjacency.children_map, a, b)
            elif edge.relationship_type == FOSTER_PARENT:
                _append_unique(adjacency.foster_parent_map, b, a)
                _append_unique(adjacency.foster_children_map, a, b)
        elif isinstance(edge, SpouseEdge):
            if a == b:
                continue
            _append_unique(adjacency.spouses_of, a, b)
            _append_unique(adjacency.spouses_of, b, a)
            if not (exclude_dissolved and edge.marriage_status in DISSOLVED_STATUSES):
                spouse_candidates.append((index, edge))
        elif isinstance(edge, TwinEdge):
            adjacency.twins_of.setdefault(a, set()).add(b)
            adjacency.twins_of.setdefault(b, set()).add(a)

    adjacency.spouse_map = _pick_current_spouses(spouse_candidates)

    if skipped:
        logger.debug("Skipped %d edges with endpoints outside the person set", skipped)
    return adjacency


def build_graph(snapshot: Snapshot) -> nx.MultiDiGraph:
    """Build a NetworkX multigraph of every person and relationship in the snapshot."""
    G = nx.MultiDiGraph()

    for p in snapshot.people:
        G.add_node(
            p.id,
            person_name=p.display_name,
            gender=p.gender,
            date_of_birth=p.date_of_birth,
            date_of_death=p.date_of_death,
            legitimacy_status=p.legitimacy_status,
            house_id=p.house_id,
        )

    # Orphaned endpoints are added as bare nodes so the graph stays complete
    for edge in snapshot.relationships:
        G.add_edge(edge.person1_id, edge.person2_id, key=edge.id, relationship_type=edge.relationship_type)

    return G


def build_parent_graph(edges: Iterable[RelationshipEdge]) -> nx.DiGraph:
    """Directed parent -> child graph over ancestry edges (parent, adopted-parent)."""
    G = nx.DiGraph()
    for edge in edges:
        if isinstance(edge, ParentEdge) and edge.relationship_type in ANCESTRY_TYPES:
            G.add_edge(edge.person1_id, edge.person2_id, edge_id=edge.id)
    return G


def kinship_graph(person_ids: Iterable[PersonId], adjacency: Adjacency) -> nx.Graph:
    """
    Undirected graph of parent, child and spouse links restricted to `person_ids`.
    """
    scope = set(person_ids)
    G = nx.Graph()
    G.add_nodes_from(person_ids)

    for child_id, parent_ids in adjacency.parent_map.items():
        if child_id not in scope:
            continue
        for parent_id in parent_ids:
            if parent_id in scope:
                G.add_edge(parent_id, child_id, link="parent")

    for person_id, partners in adjacency.spouses_of.items():
        if person_id not in scope:
            continue
        for partner_id in partners:
            if partner_id in scope:
                G.add_edge(person_id, partner_id, link="spouse")

    return G


def ancestors_with_depth(
    person_id: PersonId,
    parent_map: dict[PersonId, list[PersonId]],
    max_depth: int = 10,
) -> dict[PersonId, int]:
    """
    Breadth-first walk up `parent_map`, returning ancestor -> shortest depth.

    Depth is bounded by `max_depth`, which also guarantees termination on
    cyclic input.
    """
    ancestors: dict[PersonId, int] = {}
    frontier = [person_id]
    depth = 0
    while frontier and depth < max_depth:
        depth += 1
        next_frontier = []
        for current in frontier:
            for parent_id in parent_map.get(current, []):
                if parent_id not in ancestors and parent_id != person_id:
                    ancestors[parent_id] = depth
                    next_frontier.append(parent_id)
        frontier = next_frontier
    return ancestors

