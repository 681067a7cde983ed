"""Scope selection: which people take part in one layout or classification pass."""

from collections.abc import Iterable

import networkx as nx

from kinship.graph import Adjacency
from kinship.models import House, Person, PersonId


def house_ids_in_scope(
    house_id: PersonId, houses: Iterable[House], include_cadets: bool = False
) -> set[PersonId]:
    """The target house plus, optionally, every cadet house branching from it."""
    house_ids = {house_id}
    if not include_cadets:
        return house_ids

    children_of: dict[PersonId, list[PersonId]] = {}
    for house in houses:
        if house.parent_house_id is not None:
            children_of.setdefault(house.parent_house_id, []).append(house.id)

    # Cadets of cadets are branches of the same line
    stack = [house_id]
    while stack:
        current = stack.pop()
        for cadet_id in children_of.get(current, []):
            if cadet_id not in house_ids:
                house_ids.add(cadet_id)
                stack.append(cadet_id)
    return house_ids


def house_scoped_people_ids(
    house_id: PersonId,
    people: Iterable[Person],
    houses: Iterable[House],
    adjacency: Adjacency,
    include_cadets: bool = False,
) -> set[PersonId]:
    """
    Get all people visible when viewing a house.

    Includes:
    - direct house members and their spouses
    - parents of members (and the parents' spouses), following the line upward
      only through house members
    - descendants of members (and their spouses), following the line downward
      only through house members
    """
    people_by_id = {p.id: p for p in people}
    house_ids = house_ids_in_scope(house_id, houses, include_cadets)

    def is_member(person_id: PersonId) -> bool:
        person = people_by_id.get(person_id)
        return person is not None and person.house_id in house_ids

    members = [pid for pid in people_by_id if is_member(pid)]
    scoped: set[PersonId] = set(members)

    def add_with_spouse(person_id: PersonId):
        scoped.add(person_id)
        spouse_id = adjacency.spouse(person_id)
        if spouse_id is not None:
            scoped.add(spouse_id)

    for member_id in members:
        add_with_spouse(member_id)

    visited: set[PersonId] = set()
    stack = list(members)
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        for parent_id in adjacency.parents(current):
            add_with_spouse(parent_id)
            if is_member(parent_id):
                stack.append(parent_id)

    visited = set()
    stack = list(members)
    while stack:
        current = stack.pop()
        if current in visited or not is_member(current):
            continue
        visited.add(current)
        for child_id in adjacency.children(current):
            add_with_spouse(child_id)
            stack.append(child_id)

    return {pid for pid in scoped if pid in people_by_id}


def ego_scope(G: nx.Graph, center_id: PersonId, radius: int = 2) -> set[PersonId]:
    """
    Person ids within `radius` links of `center_id`, ignoring edge direction.

    Raises ValueError when the center person is not in the graph.
    """
    if center_id not in G:
        raise ValueError(f"Person ID {center_id} not found in graph")

    undirected = G.to_undirected(as_view=True) if G.is_directed() else G
    return set(nx.ego_graph(undirected, center_id, radius=radius).nodes())
