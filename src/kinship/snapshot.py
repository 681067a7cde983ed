"""Snapshot ingestion: raw records to typed people, houses and relationship edges."""

import json
import logging
from pathlib import Path

from kinship.models import (
    GENDERS,
    LEGITIMACY_STATUSES,
    LINEAGE_GAP,
    MARRIAGE_STATUSES,
    MENTOR,
    PARENT_TYPES,
    SPOUSE,
    TWIN,
    House,
    LineageGapEdge,
    MentorEdge,
    ParentEdge,
    Person,
    RelationshipEdge,
    Snapshot,
    SpouseEdge,
    TwinEdge,
)
from kinship.parsing import normalize_partial_date

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot record cannot be turned into a typed entity."""


def _get(record: dict, snake: str, camel: str | None = None, default=None):
    """Read a field stored either in snake_case or in the store's camelCase."""
    if snake in record:
        return record[snake]
    if camel and camel in record:
        return record[camel]
    return default


def _require(record: dict, snake: str, camel: str | None = None):
    value = _get(record, snake, camel)
    if value is None:
        raise SnapshotError(f"Record {record.get('id')!r} is missing {camel or snake}")
    return value


def person_from_record(record: dict) -> Person:
    gender = _get(record, "gender")
    if gender is not None:
        gender = str(gender).lower()
        if gender not in GENDERS:
            logger.debug("Unknown gender %r on person %r treated as other", gender, record.get("id"))
            gender = "other"

    legitimacy = _get(record, "legitimacy_status", "legitimacyStatus") or "legitimate"
    if legitimacy not in LEGITIMACY_STATUSES:
        raise SnapshotError(f"Person {record.get('id')!r} has unknown legitimacy status {legitimacy!r}")

    return Person(
        id=_require(record, "id"),
        first_name=_get(record, "first_name", "firstName"),
        last_name=_get(record, "last_name", "lastName"),
        date_of_birth=normalize_partial_date(_get(record, "date_of_birth", "dateOfBirth")),
        date_of_death=normalize_partial_date(_get(record, "date_of_death", "dateOfDeath")),
        gender=gender,
        legitimacy_status=legitimacy,
        house_id=_get(record, "house_id", "houseId"),
    )


def house_from_record(record: dict) -> House:
    return House(
        id=_require(record, "id"),
        name=_get(record, "name", "houseName") or "",
        parent_house_id=_get(record, "parent_house_id", "parentHouseId"),
    )


def edge_from_record(record: dict) -> RelationshipEdge:
    """
    Build the typed edge for a relationship record.

    The record's relationship type selects the edge kind; only the fields
    relevant to that kind are read. Unknown types and malformed records raise
    SnapshotError.
    """
    relationship_type = _require(record, "relationship_type", "relationshipType")
    edge_id = _require(record, "id")
    person1_id = _require(record, "person1_id", "person1Id")
    person2_id = _require(record, "person2_id", "person2Id")

    if relationship_type in PARENT_TYPES:
        biological = _get(record, "biological_parent", "biologicalParent")
        return ParentEdge(
            id=edge_id,
            person1_id=person1_id,
            person2_id=person2_id,
            relationship_type=relationship_type,
            biological_parent=None if biological is None else bool(biological),
        )

    if relationship_type == SPOUSE:
        status = _get(record, "marriage_status", "marriageStatus") or "married"
        if status not in MARRIAGE_STATUSES:
            raise SnapshotError(f"Spouse edge {edge_id!r} has unknown marriage status {status!r}")
        return SpouseEdge(
            id=edge_id,
            person1_id=person1_id,
            person2_id=person2_id,
            marriage_status=status,
            marriage_date=normalize_partial_date(_get(record, "marriage_date", "marriageDate")),
            divorce_date=normalize_partial_date(_get(record, "divorce_date", "divorceDate")),
        )

    if relationship_type == TWIN:
        return TwinEdge(id=edge_id, person1_id=person1_id, person2_id=person2_id)

    if relationship_type == MENTOR:
        return MentorEdge(id=edge_id, person1_id=person1_id, person2_id=person2_id)

    if relationship_type == LINEAGE_GAP:
        estimated = _get(record, "estimated_generations", "estimatedGenerations")
        try:
            estimated = None if estimated in (None, "") else int(estimated)
        except (TypeError, ValueError) as exc:
            raise SnapshotError(f"Lineage gap {edge_id!r} has invalid estimated generations") from exc
        return LineageGapEdge(
            id=edge_id,
            person1_id=person1_id,
            person2_id=person2_id,
            estimated_generations=estimated,
        )

    raise SnapshotError(f"Relationship {edge_id!r} has unknown type {relationship_type!r}")


def snapshot_from_dict(data: dict) -> Snapshot:
    """Build a snapshot from a mapping with people, houses and relationships lists."""
    return Snapshot(
        people=tuple(person_from_record(r) for r in data.get("people", [])),
        relationships=tuple(edge_from_record(r) for r in data.get("relationships", [])),
        houses=tuple(house_from_record(r) for r in data.get("houses", [])),
    )


def load_snapshot(path: Path) -> Snapshot:
    """Load a JSON dataset export into a snapshot."""
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise SnapshotError(f"{path} does not contain a dataset object")
    snapshot = snapshot_from_dict(data)
    logger.info(
        "Loaded %d people, %d houses and %d relationships from %s",
        len(snapshot.people),
        len(snapshot.houses),
        len(snapshot.relationships),
        path,
    )
    return snapshot
