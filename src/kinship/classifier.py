"""Kinship labels between two people.

A cascade of rules is tried in order and the first match wins:

1. self
2. direct: spouse, former spouse, parent, child
3. siblings (full, half, twin)
4. grandparents, grandchildren, aunts/uncles, nieces/nephews
5. further direct-line and collateral degrees, up to a configurable cap
6. cousins, with degree and removal
7. in-laws
8. step-relations
9. foster relations

Every rule picks a male, female or neutral label from the target's gender.
Ancestor walks are bounded by depth so cyclic input still terminates, and
their caches live only for the duration of one call.
"""

from collections.abc import Iterable
import logging

from kinship.config import ClassifierConfig
from kinship.graph import Adjacency, ancestors_with_depth
from kinship.models import Person, PersonId

logger = logging.getLogger(__name__)


def gendered_label(person: Person, male: str, female: str, neutral: str) -> str:
    if person.gender == "male":
        return male
    if person.gender == "female":
        return female
    return neutral


def ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 23 -> '23rd'."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def sibling_type(person1_id: PersonId, person2_id: PersonId, adjacency: Adjacency) -> str | None:
    """
    'full' when both recorded parents are shared (or each side has one and the
    same recorded parent), 'half' when only some are shared, None otherwise.
    """
    parents1 = adjacency.parents(person1_id)
    parents2 = adjacency.parents(person2_id)
    if not parents1 or not parents2:
        return None

    shared = [p for p in parents1 if p in parents2]
    if not shared:
        return None

    if len(shared) >= 2 or (len(parents1) == 1 and len(parents2) == 1):
        return "full"
    return "half"


def siblings_of(person_id: PersonId, adjacency: Adjacency) -> list[PersonId]:
    """Everyone sharing at least one parent with the person."""
    siblings: list[PersonId] = []
    for parent_id in adjacency.parents(person_id):
        for child_id in adjacency.children(parent_id):
            if child_id != person_id and child_id not in siblings:
                siblings.append(child_id)
    return siblings


def _people_at_depth(start_id: PersonId, step_map: dict, depth: int) -> set[PersonId]:
    """People exactly `depth` hops away along `step_map` (any path)."""
    current = {start_id}
    for _ in range(depth):
        current = {nxt for pid in current for nxt in step_map.get(pid, [])}
        if not current:
            break
    return current


def _direct_label(depth: int, target: Person, up: bool) -> str:
    if up:
        base = ("Father", "Mother", "Parent")
    else:
        base = ("Son", "Daughter", "Child")
    male, female, neutral = base
    if depth == 1:
        return gendered_label(target, male, female, neutral)
    if up:
        male, female, neutral = "Grandfather", "Grandmother", "Grandparent"
    else:
        male, female, neutral = "Grandson", "Granddaughter", "Grandchild"
    if depth == 2:
        prefix = ""
    elif depth == 3:
        prefix = "Great-"
    else:
        prefix = f"{ordinal(depth - 2)} Great-"
    return gendered_label(target, prefix + male, prefix + female, prefix + neutral)


def _aunt_uncle_label(level: int, target: Person) -> str:
    """level 1 = aunt/uncle, 2 = great-aunt/uncle, 3 = 2nd great-aunt/uncle."""
    if level == 1:
        prefix = ""
    elif level == 2:
        prefix = "Great-"
    else:
        prefix = f"{ordinal(level - 1)} Great-"
    return gendered_label(target, f"{prefix}Uncle", f"{prefix}Aunt", f"{prefix}Aunt/Uncle")


def _niece_nephew_label(level: int, target: Person) -> str:
    """level 1 = niece/nephew, 2 = grand-niece/nephew, 3 = great-grand-niece/nephew."""
    if level == 1:
        prefix = ""
    elif level == 2:
        prefix = "Grand-"
    elif level == 3:
        prefix = "Great-Grand-"
    else:
        prefix = f"{ordinal(level - 2)} Great-Grand-"
    return gendered_label(target, f"{prefix}Nephew", f"{prefix}Niece", f"{prefix}Niece/Nephew")


def _is_aunt_uncle(person_id: PersonId, target_id: PersonId, level: int, adjacency: Adjacency) -> bool:
    """Target is a sibling of one of the person's ancestors `level` generations up."""
    for ancestor_id in _people_at_depth(person_id, adjacency.parent_map, level):
        if target_id in siblings_of(ancestor_id, adjacency):
            return True
    return False


def _is_niece_nephew(person_id: PersonId, target_id: PersonId, level: int, adjacency: Adjacency) -> bool:
    """Target descends `level` generations from one of the person's siblings."""
    for sibling_id in siblings_of(person_id, adjacency):
        if target_id in _people_at_depth(sibling_id, adjacency.children_map, level):
            return True
    return False


def cousin_label(
    person_id: PersonId,
    target_id: PersonId,
    adjacency: Adjacency,
    max_depth: int = 10,
    ancestor_cache: dict | None = None,
) -> str | None:
    """
    Cousin relationship through the nearest common ancestor.

    With the common ancestor d1 generations above the person and d2 above the
    target, the degree is min(d1, d2) - 1 and the removal is |d1 - d2|.
    Direct-line relatives and siblings are not cousins.
    """
    cache = ancestor_cache if ancestor_cache is not None else {}
    if person_id not in cache:
        cache[person_id] = ancestors_with_depth(person_id, adjacency.parent_map, max_depth)
    if target_id not in cache:
        cache[target_id] = ancestors_with_depth(target_id, adjacency.parent_map, max_depth)
    person_ancestors = cache[person_id]
    target_ancestors = cache[target_id]

    person_depth = target_depth = None
    for ancestor_id, p_depth in person_ancestors.items():
        t_depth = target_ancestors.get(ancestor_id)
        if t_depth is None:
            continue
        if person_depth is None or min(p_depth, t_depth) < min(person_depth, target_depth):
            person_depth, target_depth = p_depth, t_depth

    if person_depth is None:
        return None

    # Direct line (one side is the ancestor's child) or siblings
    if person_depth <= 1 or target_depth <= 1:
        return None

    degree = min(person_depth, target_depth) - 1
    removal = abs(person_depth - target_depth)

    label = f"{ordinal(degree)} Cousin"
    if removal == 0:
        return label
    if removal == 1:
        return f"{label} Once Removed"
    if removal == 2:
        return f"{label} Twice Removed"
    return f"{label} {removal}x Removed"


def in_law_label(person_id: PersonId, target_id: PersonId, target: Person, adjacency: Adjacency) -> str | None:
    spouse_id = adjacency.spouse(person_id)

    if spouse_id is not None:
        if target_id in adjacency.parents(spouse_id):
            return gendered_label(target, "Father-in-Law", "Mother-in-Law", "Parent-in-Law")
        if target_id in siblings_of(spouse_id, adjacency):
            return gendered_label(target, "Brother-in-Law", "Sister-in-Law", "Sibling-in-Law")

    for sibling_id in siblings_of(person_id, adjacency):
        if adjacency.spouse(sibling_id) == target_id:
            return gendered_label(target, "Brother-in-Law", "Sister-in-Law", "Sibling-in-Law")

    for child_id in adjacency.children(person_id):
        if adjacency.spouse(child_id) == target_id:
            return gendered_label(target, "Son-in-Law", "Daughter-in-Law", "Child-in-Law")

    if spouse_id is not None and target_id in _people_at_depth(spouse_id, adjacency.parent_map, 2):
        return gendered_label(target, "Grandfather-in-Law", "Grandmother-in-Law", "Grandparent-in-Law")

    return None


def step_label(person_id: PersonId, target_id: PersonId, target: Person, adjacency: Adjacency) -> str | None:
    parents = adjacency.parents(person_id)

    for parent_id in parents:
        if adjacency.spouse(parent_id) == target_id and target_id not in parents:
            return gendered_label(target, "Step-Father", "Step-Mother", "Step-Parent")

    spouse_id = adjacency.spouse(person_id)
    if spouse_id is not None:
        if target_id in adjacency.children(spouse_id) and target_id not in adjacency.children(person_id):
            return gendered_label(target, "Step-Son", "Step-Daughter", "Step-Child")

    for parent_id in parents:
        parent_spouse = adjacency.spouse(parent_id)
        if parent_spouse is None:
            continue
        if target_id in adjacency.children(parent_spouse) and sibling_type(person_id, target_id, adjacency) is None:
            return gendered_label(target, "Step-Brother", "Step-Sister", "Step-Sibling")

    return None


def foster_label(person_id: PersonId, target_id: PersonId, target: Person, adjacency: Adjacency) -> str | None:
    if target_id in adjacency.foster_parent_map.get(person_id, []):
        return gendered_label(target, "Foster Father", "Foster Mother", "Foster Parent")
    if target_id in adjacency.foster_children_map.get(person_id, []):
        return gendered_label(target, "Foster Son", "Foster Daughter", "Foster Child")
    return None


def classify(
    from_id: PersonId,
    to_id: PersonId,
    adjacency: Adjacency,
    people_by_id: dict[PersonId, Person],
    config: ClassifierConfig | None = None,
    ancestor_cache: dict | None = None,
) -> str | None:
    """
    Return the kinship label of `to_id` relative to `from_id`, or None if the
    two are unrelated or further apart than the modelled degrees.

    `ancestor_cache` may be shared across calls on the same adjacency only.
    """
    if from_id == to_id:
        return "Self"

    target = people_by_id.get(to_id)
    if target is None:
        return None

    config = config or ClassifierConfig()

    # Direct relationships
    if adjacency.spouse(from_id) == to_id:
        return gendered_label(target, "Husband", "Wife", "Spouse")
    if to_id in adjacency.spouses_of.get(from_id, []):
        return gendered_label(target, "Former Husband", "Former Wife", "Former Spouse")
    if to_id in adjacency.parents(from_id):
        return _direct_label(1, target, up=True)
    if to_id in adjacency.children(from_id):
        return _direct_label(1, target, up=False)

    kind = sibling_type(from_id, to_id, adjacency)
    if kind != "half" and to_id in adjacency.twins_of.get(from_id, ()):
        return gendered_label(target, "Twin Brother", "Twin Sister", "Twin")
    if kind == "full":
        return gendered_label(target, "Brother", "Sister", "Sibling")
    if kind == "half":
        return gendered_label(target, "Half-Brother", "Half-Sister", "Half-Sibling")

    # Direct line and collateral degrees, nearest first
    max_generations = max(config.max_direct_generations, 1)
    for degree in range(2, max_generations + 1):
        if to_id in _people_at_depth(from_id, adjacency.parent_map, degree):
            return _direct_label(degree, target, up=True)
        if to_id in _people_at_depth(from_id, adjacency.children_map, degree):
            return _direct_label(degree, target, up=False)
        if _is_aunt_uncle(from_id, to_id, degree - 1, adjacency):
            return _aunt_uncle_label(degree - 1, target)
        if _is_niece_nephew(from_id, to_id, degree - 1, adjacency):
            return _niece_nephew_label(degree - 1, target)

    label = cousin_label(from_id, to_id, adjacency, config.max_ancestor_depth, ancestor_cache)
    if label:
        return label

    label = in_law_label(from_id, to_id, target, adjacency)
    if label:
        return label

    label = step_label(from_id, to_id, target, adjacency)
    if label:
        return label

    return foster_label(from_id, to_id, target, adjacency)


def classify_all(
    person_id: PersonId,
    people: Iterable[Person],
    adjacency: Adjacency,
    config: ClassifierConfig | None = None,
) -> dict[PersonId, str]:
    """Label every person relative to `person_id`; unrelated people are left out."""
    people = list(people)
    people_by_id = {p.id: p for p in people}
    # Ancestor depths are reused across targets but never beyond this call
    ancestor_cache: dict = {}

    relationships: dict[PersonId, str] = {}
    for person in people:
        if person.id == person_id:
            continue
        label = classify(person_id, person.id, adjacency, people_by_id, config, ancestor_cache)
        if label:
            relationships[person.id] = label

    logger.debug("Labelled %d of %d people relative to %s", len(relationships), len(people), person_id)
    return relationships

