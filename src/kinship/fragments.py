"""Fragment detection: disconnected family branches within a scope."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging

import networkx as nx

from kinship.generations import find_root_person
from kinship.graph import Adjacency, kinship_graph
from kinship.models import LineageGapEdge, Person, PersonId, RelationshipEdge, birth_sort_key

logger = logging.getLogger(__name__)


@dataclass
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float


@dataclass
class Fragment:
    index: int
    root_id: PersonId
    member_ids: list[PersonId]
    generations: list[list[PersonId]] = field(default_factory=list)
    # Filled in by the layout
    bounds: Bounds | None = None

    @property
    def member_count(self) -> int:
        return len(self.member_ids)


@dataclass
class LineageGap:
    """A link between two fragments whose intermediate line is missing from scope."""

    descendant_id: PersonId
    ancestor_id: PersonId
    descendant_fragment: int
    ancestor_fragment: int
    generations: int | None
    recorded: bool  # an explicit lineage-gap edge rather than an inferred one
    relationship_id: PersonId | None = None


def detect_fragments(
    scoped_ids: Iterable[PersonId],
    people_by_id: Mapping[PersonId, Person],
    adjacency: Adjacency,
) -> list[Fragment]:
    """
    Partition a scope into connected components over parent, child and spouse
    links.

    Each fragment's root is its earliest-born member without parents inside
    the scope. Fragments are ordered by root birth date (undated last), then
    by size. Every scoped person lands in exactly one fragment.
    """

    def person_key(pid: PersonId):
        return (birth_sort_key(people_by_id[pid]), str(pid))

    scope = sorted({pid for pid in scoped_ids if pid in people_by_id}, key=person_key)
    if not scope:
        return []

    G = kinship_graph(scope, adjacency)

    fragments: list[Fragment] = []
    for component in nx.connected_components(G):
        members = sorted(component, key=person_key)
        member_people = {pid: people_by_id[pid] for pid in members}
        root_id = find_root_person(member_people, adjacency.parent_map)
        if root_id is None:
            root_id = members[0]
        fragments.append(Fragment(index=0, root_id=root_id, member_ids=members))

    fragments.sort(key=lambda f: (birth_sort_key(people_by_id[f.root_id]), -f.member_count, str(f.root_id)))
    for index, fragment in enumerate(fragments):
        fragment.index = index

    if len(fragments) > 1:
        logger.info("Detected %d fragments in scope of %d people", len(fragments), len(scope))
    return fragments


def find_lineage_gaps(
    fragments: list[Fragment],
    adjacency: Adjacency,
    edges: Iterable[RelationshipEdge],
    max_depth: int = 10,
) -> list[LineageGap]:
    """
    Connections between fragments that the scope cut apart.

    Recorded gaps come from lineage-gap edges. Inferred gaps follow a
    member's parents out of scope until the nearest in-scope ancestor; when
    that ancestor belongs to another fragment the pair is reported with the
    number of generations between them.
    """
    fragment_of = {pid: f.index for f in fragments for pid in f.member_ids}
    gaps: list[LineageGap] = []
    seen: set[tuple] = set()

    for edge in edges:
        if not isinstance(edge, LineageGapEdge):
            continue
        descendant_fragment = fragment_of.get(edge.person1_id)
        ancestor_fragment = fragment_of.get(edge.person2_id)
        if descendant_fragment is None or ancestor_fragment is None or descendant_fragment == ancestor_fragment:
            continue
        seen.add((edge.person1_id, edge.person2_id))
        gaps.append(
            LineageGap(
                descendant_id=edge.person1_id,
                ancestor_id=edge.person2_id,
                descendant_fragment=descendant_fragment,
                ancestor_fragment=ancestor_fragment,
                generations=edge.estimated_generations,
                recorded=True,
                relationship_id=edge.id,
            )
        )

    for fragment in fragments:
        for pid in fragment.member_ids:
            outside = [p for p in adjacency.parents(pid) if p not in fragment_of]
            found = _nearest_scoped_ancestor(outside, adjacency, fragment_of, fragment.index, max_depth)
            if found is None:
                continue
            ancestor_id, depth = found
            if (pid, ancestor_id) in seen:
                continue
            seen.add((pid, ancestor_id))
            gaps.append(
                LineageGap(
                    descendant_id=pid,
                    ancestor_id=ancestor_id,
                    descendant_fragment=fragment.index,
                    ancestor_fragment=fragment_of[ancestor_id],
                    generations=depth,
                    recorded=False,
                )
            )

    return gaps


def _nearest_scoped_ancestor(
    outside_parents: list[PersonId],
    adjacency: Adjacency,
    fragment_of: dict[PersonId, int],
    own_fragment: int,
    max_depth: int,
) -> tuple[PersonId, int] | None:
    """Walk up through out-of-scope people to the first ancestor in another fragment."""
    visited = set(outside_parents)
    frontier = list(outside_parents)
    depth = 1
    while frontier and depth < max_depth:
        depth += 1
        next_frontier = []
        for current in frontier:
            for parent_id in adjacency.parents(current):
                if parent_id in visited:
                    continue
                visited.add(parent_id)
                if parent_id not in fragment_of:
                    next_frontier.append(parent_id)
                elif fragment_of[parent_id] != own_fragment:
                    return parent_id, depth
        frontier = next_frontier
    return None
