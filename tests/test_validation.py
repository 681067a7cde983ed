from kinship.models import ADOPTED_PARENT, FOSTER_PARENT, House, ParentEdge, Person, Snapshot, SpouseEdge, TwinEdge
from kinship.validation import (
    MIN_PARENT_AGE,
    detect_cycle,
    find_circular_ancestry,
    find_date_anomalies,
    find_duplicate_edges,
    find_orphaned_records,
    run_integrity_check,
    validate_bidirectional_relationships,
    validate_parent_child_relationship,
    validate_relationship,
)


def chain_edges():
    # a -> b -> c (a is b's parent, b is c's parent)
    return [ParentEdge(1, "a", "b"), ParentEdge(2, "b", "c")]


def test_detect_cycle_self_parent():
    check = detect_cycle("a", "a", [])
    assert check.is_circular
    assert check.path == ["a"]


def test_detect_cycle_through_descendants():
    check = detect_cycle("a", "c", chain_edges())
    assert check.is_circular
    assert check.path == ["c", "b", "a"]


def test_detect_cycle_allows_new_ancestor():
    assert not detect_cycle("a", "z", chain_edges()).is_circular
    assert not detect_cycle("c", "a", chain_edges()).is_circular


def test_foster_edges_do_not_count_as_ancestry():
    edges = [ParentEdge(1, "a", "b", FOSTER_PARENT)]
    assert not detect_cycle("a", "b", edges).is_circular


def test_adopted_edges_count_as_ancestry():
    edges = [ParentEdge(1, "a", "b", ADOPTED_PARENT)]
    assert detect_cycle("a", "b", edges).is_circular


def test_validate_parent_child_relationship_messages():
    edges = chain_edges()
    assert validate_parent_child_relationship("a", "a", edges).error == "A person cannot be their own parent"
    assert (
        validate_parent_child_relationship("a", "b", edges).error == "This parent-child relationship already exists"
    )
    assert validate_parent_child_relationship("c", "a", edges).error == (
        "Cannot create relationship: would cause circular ancestry (c → b → a)"
    )
    assert validate_parent_child_relationship("z", "a", edges).valid


def test_validate_relationship_symmetric_duplicates():
    edges = [SpouseEdge(1, "a", "b"), TwinEdge(2, "c", "d")]
    assert not validate_relationship(SpouseEdge(3, "b", "a"), edges).valid
    assert not validate_relationship(TwinEdge(4, "d", "c"), edges).valid
    assert not validate_relationship(SpouseEdge(5, "a", "a"), edges).valid
    assert validate_relationship(SpouseEdge(6, "a", "c"), edges).valid
    assert not validate_relationship(ParentEdge(7, "b", "b"), edges).valid


def test_find_circular_ancestry():
    edges = chain_edges() + [ParentEdge(3, "c", "a"), ParentEdge(4, "x", "x"), ParentEdge(5, "p", "q")]
    issues = {issue.relationship_id: issue for issue in find_circular_ancestry(edges)}

    assert set(issues) == {1, 2, 3, 4}
    assert issues[3].path == ["c", "a", "b", "c"]
    assert issues[4].path == ["x", "x"]


def test_orphaned_records():
    snapshot = Snapshot(
        people=(Person("a", house_id="h1"), Person("b", house_id="missing")),
        relationships=(ParentEdge(1, "a", "b"), ParentEdge(2, "a", "ghost")),
        houses=(House("h1", "First"), House("h2", "Cadet", parent_house_id="gone")),
    )
    report = find_orphaned_records(snapshot)

    assert [(e.id, e.missing_person1, e.missing_person2) for e in report.relationships] == [(2, None, "ghost")]
    assert [m.person_id for m in report.people_with_missing_house] == ["b"]
    assert [h.house_id for h in report.houses_with_missing_parent] == ["h2"]


def test_bidirectional_mismatches():
    edges = [
        SpouseEdge(1, "a", "b", marriage_date="1900"),
        SpouseEdge(2, "b", "a", marriage_date="1901"),
        SpouseEdge(3, "c", "d", marriage_status="divorced"),
        SpouseEdge(4, "d", "c", marriage_status="divorced"),
    ]
    issues = validate_bidirectional_relationships(edges)
    assert [(i.type, i.relationship1, i.relationship2) for i in issues] == [("marriage-date-mismatch", 1, 2)]


def test_duplicate_edges():
    edges = [ParentEdge(1, "a", "b"), ParentEdge(2, "a", "b"), ParentEdge(3, "b", "a", FOSTER_PARENT)]
    duplicates = find_duplicate_edges(edges)
    assert len(duplicates) == 1
    assert duplicates[0].relationship_ids == [1, 2]


def test_date_anomalies():
    snapshot = Snapshot(
        people=(
            Person("old", first_name="Old", date_of_birth="1900"),
            Person("young", first_name="Young", date_of_birth="1890"),
            Person("early", first_name="Early", date_of_birth="1905"),
            Person("ghost", first_name="Ghost", date_of_birth="1950-05-01", date_of_death="1949"),
            Person("baby", first_name="Baby", date_of_birth="1960-05-01", date_of_death="1960"),
        ),
        relationships=(ParentEdge(1, "old", "young"), ParentEdge(2, "old", "early")),
    )
    warnings = find_date_anomalies(snapshot)

    assert "Impossible: Young born before parent Old" in warnings
    assert f"Suspicious: Old was less than {MIN_PARENT_AGE} years old when Early was born" in warnings
    assert "Impossible: Ghost died before being born" in warnings
    assert len(warnings) == 3


def test_integrity_check(small_family):
    report = run_integrity_check(small_family.snapshot())
    assert report.healthy
    assert report.summary()["total_circular_issues"] == 0
    assert "summary" in report.to_dict()

    small_family.child("A", "C")
    report = run_integrity_check(small_family.snapshot())
    assert not report.healthy
    assert report.summary()["total_circular_issues"] == 2


def test_date_anomalies_respect_partial_precision():
    snapshot = Snapshot(
        people=(
            Person("parent", first_name="Parent", date_of_birth="1020-05"),
            Person("child", first_name="Child", date_of_birth="1020"),
            Person("elder", first_name="Elder", date_of_birth="950"),
            Person("heir", first_name="Heir", date_of_birth="1000", date_of_death="1040"),
        ),
        relationships=(ParentEdge(1, "parent", "child"), ParentEdge(2, "elder", "heir")),
    )
    warnings = find_date_anomalies(snapshot)

    assert not any(w.startswith("Impossible") for w in warnings)
    assert f"Suspicious: Parent was less than {MIN_PARENT_AGE} years old when Child was born" in warnings
