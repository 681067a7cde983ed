"""Ancestry and data-integrity validation for family tree data.

Nothing here raises on snapshot content: every check returns a result object
and the caller decides whether to block a mutation or merely warn.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
import logging

import networkx as nx

from kinship.graph import build_parent_graph
from kinship.models import (
    ANCESTRY_TYPES,
    PARENT,
    ParentEdge,
    PersonId,
    RelationshipEdge,
    Snapshot,
    SpouseEdge,
    TWIN,
    sortable_date,
)

logger = logging.getLogger(__name__)

# Youngest plausible age of a parent at a child's birth
MIN_PARENT_AGE = 12


@dataclass
class CycleCheck:
    is_circular: bool
    path: list[PersonId] | None = None


@dataclass
class ValidationResult:
    valid: bool
    error: str | None = None


@dataclass
class OrphanedEdge:
    id: PersonId
    missing_person1: PersonId | None
    missing_person2: PersonId | None


@dataclass
class MissingHouse:
    person_id: PersonId
    person_name: str
    missing_house_id: PersonId


@dataclass
class MissingParentHouse:
    house_id: PersonId
    house_name: str
    missing_parent_house_id: PersonId


@dataclass
class OrphanReport:
    relationships: list[OrphanedEdge] = field(default_factory=list)
    people_with_missing_house: list[MissingHouse] = field(default_factory=list)
    houses_with_missing_parent: list[MissingParentHouse] = field(default_factory=list)


@dataclass
class BidirectionalIssue:
    type: str
    relationship1: PersonId
    relationship2: PersonId
    person1: PersonId
    person2: PersonId


@dataclass
class DuplicateEdge:
    relationship_type: str
    person1: PersonId
    person2: PersonId
    relationship_ids: list[PersonId]


@dataclass
class CircularEdge:
    relationship_id: PersonId
    parent_id: PersonId
    child_id: PersonId
    path: list[PersonId]


@dataclass
class IntegrityReport:
    healthy: bool
    timestamp: str
    orphaned_relationships: list[OrphanedEdge]
    orphaned_people_houses: list[MissingHouse]
    orphaned_house_parents: list[MissingParentHouse]
    bidirectional_inconsistencies: list[BidirectionalIssue]
    duplicate_relationships: list[DuplicateEdge]
    circular_ancestry: list[CircularEdge]
    # Reported for review; these never make a snapshot unhealthy
    date_warnings: list[str]

    def summary(self) -> dict[str, int]:
        return {
            "total_orphaned_relationships": len(self.orphaned_relationships),
            "total_orphaned_people_houses": len(self.orphaned_people_houses),
            "total_orphaned_house_parents": len(self.orphaned_house_parents),
            "total_bidirectional_issues": len(self.bidirectional_inconsistencies),
            "total_duplicate_relationships": len(self.duplicate_relationships),
            "total_circular_issues": len(self.circular_ancestry),
            "total_date_warnings": len(self.date_warnings),
        }

    def to_dict(self) -> dict:
        data = asdict(self)
        data["summary"] = self.summary()
        return data


def detect_cycle(
    child_id: PersonId, proposed_parent_id: PersonId, edges: Iterable[RelationshipEdge]
) -> CycleCheck:
    """
    Check whether making `proposed_parent_id` a parent of `child_id` would
    make someone their own ancestor.

    The walk goes upward from the proposed parent through existing parent and
    adopted-parent edges. If it reaches the child, the returned path runs from
    the proposed parent up to the child.
    """
    if child_id == proposed_parent_id:
        return CycleCheck(is_circular=True, path=[child_id])

    G = build_parent_graph(edges)
    if child_id not in G or proposed_parent_id not in G:
        return CycleCheck(is_circular=False)

    try:
        # Edges point parent -> child, so this is a descent from child to proposed parent
        descent = nx.shortest_path(G, child_id, proposed_parent_id)
    except nx.NetworkXNoPath:
        return CycleCheck(is_circular=False)

    return CycleCheck(is_circular=True, path=list(reversed(descent)))


def validate_parent_child_relationship(
    parent_id: PersonId,
    child_id: PersonId,
    edges: Iterable[RelationshipEdge],
    relationship_type: str = PARENT,
) -> ValidationResult:
    """
    Validate that a parent-child edge can be created.

    Rejects self-parenting, duplicates of an existing edge, and edges that
    would create circular ancestry.
    """
    if parent_id == child_id:
        return ValidationResult(valid=False, error="A person cannot be their own parent")

    edges = list(edges)
    for edge in edges:
        if (
            isinstance(edge, ParentEdge)
            and edge.relationship_type == relationship_type
            and edge.person1_id == parent_id
            and edge.person2_id == child_id
        ):
            return ValidationResult(valid=False, error="This parent-child relationship already exists")

    if relationship_type in ANCESTRY_TYPES:
        check = detect_cycle(child_id, parent_id, edges)
        if check.is_circular:
            path_str = " → ".join(str(pid) for pid in check.path)
            return ValidationResult(
                valid=False,
                error=f"Cannot create relationship: would cause circular ancestry ({path_str})",
            )

    return ValidationResult(valid=True)


def validate_relationship(edge: RelationshipEdge, edges: Iterable[RelationshipEdge]) -> ValidationResult:
    """Gate any new edge before it is committed to the store."""
    if isinstance(edge, ParentEdge):
        return validate_parent_child_relationship(
            edge.person1_id, edge.person2_id, edges, edge.relationship_type
        )

    if edge.person1_id == edge.person2_id:
        return ValidationResult(valid=False, error=f"A {edge.relationship_type} relationship needs two people")

    symmetric = isinstance(edge, SpouseEdge) or edge.relationship_type == TWIN
    pair = {edge.person1_id, edge.person2_id}
    for existing in edges:
        if existing.relationship_type != edge.relationship_type:
            continue
        if (existing.person1_id, existing.person2_id) == (edge.person1_id, edge.person2_id) or (
            symmetric and {existing.person1_id, existing.person2_id} == pair
        ):
            return ValidationResult(valid=False, error=f"This {edge.relationship_type} relationship already exists")

    return ValidationResult(valid=True)


def find_orphaned_records(snapshot: Snapshot) -> OrphanReport:
    """Report every reference to a person or house missing from the snapshot."""
    people_ids = {p.id for p in snapshot.people}
    house_ids = {h.id for h in snapshot.houses}
    report = OrphanReport()

    for edge in snapshot.relationships:
        missing1 = edge.person1_id if edge.person1_id not in people_ids else None
        missing2 = edge.person2_id if edge.person2_id not in people_ids else None
        if missing1 is not None or missing2 is not None:
            report.relationships.append(
                OrphanedEdge(id=edge.id, missing_person1=missing1, missing_person2=missing2)
            )

    for person in snapshot.people:
        if person.house_id is not None and person.house_id not in house_ids:
            report.people_with_missing_house.append(
                MissingHouse(
                    person_id=person.id,
                    person_name=person.display_name,
                    missing_house_id=person.house_id,
                )
            )

    for house in snapshot.houses:
        if house.parent_house_id is not None and house.parent_house_id not in house_ids:
            report.houses_with_missing_parent.append(
                MissingParentHouse(
                    house_id=house.id,
                    house_name=house.name,
                    missing_parent_house_id=house.parent_house_id,
                )
            )

    return report


def validate_bidirectional_relationships(edges: Iterable[RelationshipEdge]) -> list[BidirectionalIssue]:
    """
    Flag marriages recorded in both directions whose details disagree.

    Marriages are usually stored once; when both directions exist they must
    carry the same date, status and divorce date.
    """
    marriages = [e for e in edges if isinstance(e, SpouseEdge)]
    by_direction: dict[tuple, list[tuple[int, SpouseEdge]]] = defaultdict(list)
    for index, marriage in enumerate(marriages):
        by_direction[(marriage.person1_id, marriage.person2_id)].append((index, marriage))

    checks = (
        ("marriage-date-mismatch", "marriage_date"),
        ("marriage-status-mismatch", "marriage_status"),
        ("divorce-date-mismatch", "divorce_date"),
    )

    issues: list[BidirectionalIssue] = []
    for index, marriage in enumerate(marriages):
        for other_index, reverse in by_direction.get((marriage.person2_id, marriage.person1_id), []):
            # Each unordered pair of records is compared once
            if other_index <= index:
                continue
            for issue_type, attr in checks:
                if getattr(marriage, attr) != getattr(reverse, attr):
                    issues.append(
                        BidirectionalIssue(
                            type=issue_type,
                            relationship1=marriage.id,
                            relationship2=reverse.id,
                            person1=marriage.person1_id,
                            person2=marriage.person2_id,
                        )
                    )
    return issues


def find_duplicate_edges(edges: Iterable[RelationshipEdge]) -> list[DuplicateEdge]:
    """Edges of the same type recorded more than once between the same ordered pair."""
    groups: dict[tuple, list[PersonId]] = defaultdict(list)
    for edge in edges:
        groups[(edge.relationship_type, edge.person1_id, edge.person2_id)].append(edge.id)

    return [
        DuplicateEdge(relationship_type=rtype, person1=p1, person2=p2, relationship_ids=ids)
        for (rtype, p1, p2), ids in groups.items()
        if len(ids) > 1
    ]


def find_circular_ancestry(edges: Iterable[RelationshipEdge]) -> list[CircularEdge]:
    """
    Every ancestry edge that lies on a cycle.

    The path of each issue is the chain of parent-of links that closes the
    loop, starting and ending with the edge's parent.
    """
    edges = [e for e in edges if isinstance(e, ParentEdge) and e.relationship_type in ANCESTRY_TYPES]
    G = build_parent_graph(edges)

    component_of: dict[PersonId, int] = {}
    for number, component in enumerate(nx.strongly_connected_components(G)):
        if len(component) > 1:
            for node in component:
                component_of[node] = number

    issues: list[CircularEdge] = []
    for edge in edges:
        parent_id, child_id = edge.person1_id, edge.person2_id
        if parent_id == child_id:
            path = [parent_id, parent_id]
        elif parent_id in component_of and component_of.get(child_id) == component_of[parent_id]:
            path = [parent_id] + nx.shortest_path(G, child_id, parent_id)
        else:
            continue
        issues.append(
            CircularEdge(relationship_id=edge.id, parent_id=parent_id, child_id=child_id, path=path)
        )
    return issues


def _year(date: str) -> int | None:
    try:
        return int(date[:4])
    except (ValueError, IndexError):
        return None


def find_date_anomalies(snapshot: Snapshot) -> list[str]:
    """
    Check the snapshot for:
    - Impossible ages (child born before parent)
    - Parents younger than MIN_PARENT_AGE at a birth
    - Death before birth

    Partial ISO dates compare correctly as strings. Returns warning messages.
    """
    warnings: list[str] = []
    people_by_id = snapshot.people_by_id()

    for edge in snapshot.relationships:
        if not isinstance(edge, ParentEdge) or edge.relationship_type != PARENT:
            continue

        parent = people_by_id.get(edge.person1_id)
        child = people_by_id.get(edge.person2_id)
        if parent is None or child is None:
            continue

        parent_birth = sortable_date(parent.date_of_birth)
        child_birth = sortable_date(child.date_of_birth)
        if not parent_birth or not child_birth:
            continue

        # A child dated only to the parent's birth year or month is not an anomaly
        if child_birth < parent_birth and not parent_birth.startswith(child_birth):
            warnings.append(f"Impossible: {child.display_name} born before parent {parent.display_name}")
            continue

        parent_year = _year(parent_birth)
        child_year = _year(child_birth)
        if parent_year is not None and child_year is not None and child_year - parent_year < MIN_PARENT_AGE:
            warnings.append(
                f"Suspicious: {parent.display_name} was less than {MIN_PARENT_AGE} years "
                f"old when {child.display_name} was born"
            )

    for person in snapshot.people:
        birth = sortable_date(person.date_of_birth)
        death = sortable_date(person.date_of_death)
        # A year-only death in the birth year is not an anomaly
        if birth and death and death < birth and not birth.startswith(death):
            warnings.append(f"Impossible: {person.display_name} died before being born")

    return warnings


def run_integrity_check(snapshot: Snapshot) -> IntegrityReport:
    """Run every integrity check and aggregate the results into one report."""
    orphans = find_orphaned_records(snapshot)
    bidirectional = validate_bidirectional_relationships(snapshot.relationships)
    duplicates = find_duplicate_edges(snapshot.relationships)
    circular = find_circular_ancestry(snapshot.relationships)
    date_warnings = find_date_anomalies(snapshot)

    has_issues = bool(
        orphans.relationships
        or orphans.people_with_missing_house
        or orphans.houses_with_missing_parent
        or bidirectional
        or duplicates
        or circular
    )

    report = IntegrityReport(
        healthy=not has_issues,
        timestamp=datetime.now(timezone.utc).isoformat(),
        orphaned_relationships=orphans.relationships,
        orphaned_people_houses=orphans.people_with_missing_house,
        orphaned_house_parents=orphans.houses_with_missing_parent,
        bidirectional_inconsistencies=bidirectional,
        duplicate_relationships=duplicates,
        circular_ancestry=circular,
        date_warnings=date_warnings,
    )
    if has_issues:
        logger.warning("Integrity check found issues: %s", report.summary())
    return report
