"""Small builder for hand-written family snapshots."""

import itertools

from kinship.graph import build_adjacency
from kinship.models import (
    PARENT,
    LineageGapEdge,
    MentorEdge,
    ParentEdge,
    Person,
    Snapshot,
    SpouseEdge,
    TwinEdge,
)


class FamilyBuilder:
    def __init__(self):
        self.people: list[Person] = []
        self.edges: list = []
        self.houses: list = []
        self._edge_ids = itertools.count(1)

    def person(self, pid, gender=None, born=None, **kwargs):
        self.people.append(Person(id=pid, first_name=str(pid).title(), gender=gender, date_of_birth=born, **kwargs))
        return pid

    def parent(self, parent_id, child_id, relationship_type=PARENT):
        self.edges.append(ParentEdge(next(self._edge_ids), parent_id, child_id, relationship_type))

    def child(self, child_id, *parent_ids):
        for parent_id in parent_ids:
            self.parent(parent_id, child_id)

    def marry(self, a, b, status="married", date=None):
        self.edges.append(SpouseEdge(next(self._edge_ids), a, b, marriage_status=status, marriage_date=date))

    def twins(self, a, b):
        self.edges.append(TwinEdge(next(self._edge_ids), a, b))

    def mentor(self, mentor_id, protege_id):
        self.edges.append(MentorEdge(next(self._edge_ids), mentor_id, protege_id))

    def gap(self, descendant_id, ancestor_id, generations=None):
        self.edges.append(LineageGapEdge(next(self._edge_ids), descendant_id, ancestor_id, generations))

    def snapshot(self) -> Snapshot:
        return Snapshot(people=tuple(self.people), relationships=tuple(self.edges), houses=tuple(self.houses))

    def adjacency(self, exclude_dissolved=True):
        return build_adjacency(self.people, self.edges, exclude_dissolved)

    def people_by_id(self):
        return {p.id: p for p in self.people}
