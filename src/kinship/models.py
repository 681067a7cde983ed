"""Data classes for family tree entities."""

from dataclasses import dataclass

PersonId = int | str

# Relationship types
PARENT = "parent"
ADOPTED_PARENT = "adopted-parent"
FOSTER_PARENT = "foster-parent"
SPOUSE = "spouse"
TWIN = "twin"
MENTOR = "mentor"
LINEAGE_GAP = "lineage-gap"

PARENT_TYPES = frozenset({PARENT, ADOPTED_PARENT, FOSTER_PARENT})
# Only these take part in ancestry (and so must stay acyclic)
ANCESTRY_TYPES = frozenset({PARENT, ADOPTED_PARENT})

MARRIAGE_STATUSES = ("married", "widowed", "betrothed", "divorced")
DISSOLVED_STATUSES = frozenset({"divorced"})

GENDERS = frozenset({"male", "female", "other"})
LEGITIMACY_STATUSES = frozenset({"legitimate", "bastard", "adopted", "foster", "unknown"})


@dataclass(frozen=True)
class Person:
    id: PersonId
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None  # partial ISO: YYYY, YYYY-MM or YYYY-MM-DD
    date_of_death: str | None = None
    gender: str | None = None  # male, female, other
    legitimacy_status: str = "legitimate"
    house_id: PersonId | None = None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else f"#{self.id}"


@dataclass(frozen=True)
class House:
    id: PersonId
    name: str
    parent_house_id: PersonId | None = None  # set for cadet houses


@dataclass(frozen=True)
class ParentEdge:
    id: PersonId
    person1_id: PersonId  # parent
    person2_id: PersonId  # child
    relationship_type: str = PARENT  # parent, adopted-parent, foster-parent
    biological_parent: bool | None = None


@dataclass(frozen=True)
class SpouseEdge:
    id: PersonId
    person1_id: PersonId
    person2_id: PersonId
    marriage_status: str = "married"
    marriage_date: str | None = None
    divorce_date: str | None = None
    relationship_type: str = SPOUSE


@dataclass(frozen=True)
class TwinEdge:
    id: PersonId
    person1_id: PersonId
    person2_id: PersonId
    relationship_type: str = TWIN


@dataclass(frozen=True)
class MentorEdge:
    id: PersonId
    person1_id: PersonId  # mentor
    person2_id: PersonId  # protege
    relationship_type: str = MENTOR


@dataclass(frozen=True)
class LineageGapEdge:
    id: PersonId
    person1_id: PersonId  # descendant
    person2_id: PersonId  # distant ancestor
    estimated_generations: int | None = None
    relationship_type: str = LINEAGE_GAP


RelationshipEdge = ParentEdge | SpouseEdge | TwinEdge | MentorEdge | LineageGapEdge


@dataclass(frozen=True)
class Snapshot:
    people: tuple[Person, ...] = ()
    relationships: tuple[RelationshipEdge, ...] = ()
    houses: tuple[House, ...] = ()

    def people_by_id(self) -> dict[PersonId, Person]:
        return {p.id: p for p in self.people}


def sortable_date(value: str | None) -> str | None:
    """Zero-pad the year of a partial ISO date so that string order is chronological."""
    if not value:
        return value
    year, sep, rest = value.partition("-")
    if year.isdigit() and len(year) < 4:
        return year.zfill(4) + sep + rest
    return value


def birth_sort_key(person: Person | None) -> tuple[bool, str]:
    """Sort key for birth order: undated people sort last."""
    if person is None or not person.date_of_birth:
        return (True, "")
    return (False, sortable_date(person.date_of_birth))
