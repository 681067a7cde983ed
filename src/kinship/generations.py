"""Generation assignment: an integer generation index for every person in a scope."""

from collections.abc import Mapping
import logging

from kinship.graph import Adjacency
from kinship.models import Person, PersonId, birth_sort_key

logger = logging.getLogger(__name__)


def find_root_person(
    people_by_id: Mapping[PersonId, Person],
    parent_map: Mapping[PersonId, list[PersonId]],
    root_override: PersonId | None = None,
) -> PersonId | None:
    """
    The override when it is in scope, otherwise the earliest-born person with
    no recorded parent inside the scope. Undated people sort last; ties keep
    input order. None when everyone in scope has a parent in scope.
    """
    if root_override is not None and root_override in people_by_id:
        return root_override

    candidates = [
        person
        for pid, person in people_by_id.items()
        if not any(parent_id in people_by_id for parent_id in parent_map.get(pid, []))
    ]
    if not candidates:
        return None
    return min(candidates, key=birth_sort_key).id


def generation_index(generations: list[list[PersonId]]) -> dict[PersonId, int]:
    return {pid: index for index, ids in enumerate(generations) for pid in ids}


def assign_generations(
    scoped_people_by_id: Mapping[PersonId, Person],
    adjacency: Adjacency,
    root_override: PersonId | None = None,
) -> list[list[PersonId]]:
    """
    Compute generations for a scope, oldest first.

    1. Generation 0 holds the root. The root's spouse is marked processed
       so the expansion below does not pick them up as anyone's child.
    2. Breadth-first expansion: children of each person and of their spouse,
       restricted to the scope, form the next generation.
    3. Other parentless people default to generation 0 and seed their own
       expansion, except childless spouses (former ones included), who join
       their partner.
    4. Spouse harmonization over every marriage, current or former: the side
       with children wins, then the side with parents in scope, otherwise
       both move to the later generation.
    5. Relaxation restores child > parent and spouse equality.

    Returns [] when no root can be found.
    """
    scope = scoped_people_by_id
    root_id = find_root_person(scope, adjacency.parent_map, root_override)
    if root_id is None:
        logger.warning("No root found: every person in scope has a parent in scope")
        return []

    def parents_in_scope(pid: PersonId) -> list[PersonId]:
        return [p for p in adjacency.parents(pid) if p in scope]

    def children_in_scope(pid: PersonId) -> list[PersonId]:
        return [c for c in adjacency.children(pid) if c in scope]

    def spouse_in_scope(pid: PersonId) -> PersonId | None:
        spouse_id = adjacency.spouse(pid)
        return spouse_id if spouse_id in scope else None

    def partners_in_scope(pid: PersonId) -> list[PersonId]:
        # Current spouse first, then former partners in edge order
        current = spouse_in_scope(pid)
        partners = [current] if current is not None else []
        partners += [p for p in adjacency.spouses_of.get(pid, []) if p in scope and p != current]
        return partners

    def placed_partner(pid: PersonId) -> PersonId | None:
        return next((p for p in partners_in_scope(pid) if p in generation), None)

    generation: dict[PersonId, int] = {root_id: 0}
    order: list[PersonId] = [root_id]
    processed: set[PersonId] = {root_id}
    root_spouse = spouse_in_scope(root_id)
    if root_spouse is not None:
        processed.add(root_spouse)

    def expand(seeds: list[PersonId]):
        frontier = seeds
        while frontier:
            next_frontier = []
            for pid in frontier:
                sources = [pid]
                spouse_id = spouse_in_scope(pid)
                if spouse_id is not None:
                    sources.append(spouse_id)
                for source in sources:
                    for child_id in children_in_scope(source):
                        if child_id in processed:
                            continue
                        processed.add(child_id)
                        generation[child_id] = generation[pid] + 1
                        order.append(child_id)
                        next_frontier.append(child_id)
            frontier = next_frontier

    expand([root_id])

    # Unconnected parentless people start at generation 0
    parentless = sorted(
        (person for pid, person in scope.items() if pid not in generation and not parents_in_scope(pid)),
        key=birth_sort_key,
    )
    for person in parentless:
        pid = person.id
        if pid in generation:
            continue
        processed.add(pid)
        partner_id = placed_partner(pid)
        if partner_id is not None and not children_in_scope(pid):
            generation[pid] = generation[partner_id]
        else:
            generation[pid] = 0
        order.append(pid)
        expand([pid])

    # People reachable only through parents the expansion never reached
    changed = True
    while changed:
        changed = False
        for pid in scope:
            if pid in generation:
                continue
            known = [generation[p] for p in parents_in_scope(pid) if p in generation]
            partner_id = placed_partner(pid)
            if known:
                generation[pid] = max(known) + 1
            elif partner_id is not None:
                generation[pid] = generation[partner_id]
            else:
                continue
            order.append(pid)
            changed = True

    unassigned = [pid for pid in scope if pid not in generation]
    if unassigned:
        logger.warning("Could not assign a generation to %d people: %s", len(unassigned), unassigned)

    # Every marriage counts here, former ones included
    couples = []
    seen_couples: set[frozenset] = set()
    for pid in order:
        for partner_id in partners_in_scope(pid):
            if partner_id not in generation:
                continue
            key = frozenset((pid, partner_id))
            if key not in seen_couples:
                seen_couples.add(key)
                couples.append((pid, partner_id))

    for a, b in couples:
        if generation[a] == generation[b]:
            continue
        a_children, b_children = bool(children_in_scope(a)), bool(children_in_scope(b))
        a_parents, b_parents = bool(parents_in_scope(a)), bool(parents_in_scope(b))
        if a_children != b_children:
            source, other = (a, b) if a_children else (b, a)
            generation[other] = generation[source]
        elif a_parents != b_parents:
            source, other = (a, b) if a_parents else (b, a)
            generation[other] = generation[source]
        else:
            generation[a] = generation[b] = max(generation[a], generation[b])

    _relax(generation, order, couples, parents_in_scope)

    lowest = min(generation.values())
    depth = max(generation.values()) - lowest + 1
    generations: list[list[PersonId]] = [[] for _ in range(depth)]
    for pid in order:
        generations[generation[pid] - lowest].append(pid)

    logger.debug(
        "Generations detected: %s",
        ", ".join(f"Gen {i}: {len(ids)} people" for i, ids in enumerate(generations)),
    )
    return generations


def _relax(generation: dict, order: list, couples: list, parents_in_scope) -> None:
    """Push generations down until every child sits below its parents and spouses match."""
    for _ in range(len(order) + 1):
        changed = False
        for pid in order:
            known = [generation[p] for p in parents_in_scope(pid) if p in generation]
            if known and generation[pid] <= max(known):
                generation[pid] = max(known) + 1
                changed = True
        for a, b in couples:
            if generation[a] != generation[b]:
                generation[a] = generation[b] = max(generation[a], generation[b])
                changed = True
        if not changed:
            return
    logger.warning("Generation relaxation did not settle; spouse and parent constraints conflict")
