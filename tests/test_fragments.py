from kinship.fragments import detect_fragments, find_lineage_gaps


def two_families(builder):
    builder.person("A", "male", "1000")
    builder.person("B", "female", "1002")
    builder.person("C", "female", "1020")
    builder.marry("A", "B")
    builder.child("C", "A", "B")
    builder.person("E", "male", "900")
    builder.person("F", "female", "905")
    builder.marry("E", "F")
    builder.person("loner")
    return builder


def test_fragments_partition_scope(builder):
    family = two_families(builder)
    people = family.people_by_id()
    fragments = detect_fragments(people, people, family.adjacency())

    members = [pid for f in fragments for pid in f.member_ids]
    assert sorted(members) == sorted(people)
    assert len(members) == len(set(members))


def test_fragments_ordered_by_root_birth(builder):
    family = two_families(builder)
    people = family.people_by_id()
    fragments = detect_fragments(people, people, family.adjacency())

    assert [f.root_id for f in fragments] == ["E", "A", "loner"]
    assert [f.index for f in fragments] == [0, 1, 2]
    assert fragments[1].member_count == 3


def test_ids_outside_snapshot_are_ignored(small_family):
    people = small_family.people_by_id()
    fragments = detect_fragments(["A", "ghost"], people, small_family.adjacency())
    assert [f.member_ids for f in fragments] == [["A"]]


def test_empty_scope(small_family):
    assert detect_fragments([], small_family.people_by_id(), small_family.adjacency()) == []


def test_inferred_lineage_gap(builder):
    builder.person("ancestor", born="1800")
    builder.person("middle", born="1830")
    builder.person("descendant", born="1860")
    builder.child("middle", "ancestor")
    builder.child("descendant", "middle")
    adjacency = builder.adjacency()

    fragments = detect_fragments(["ancestor", "descendant"], builder.people_by_id(), adjacency)
    assert len(fragments) == 2

    gaps = find_lineage_gaps(fragments, adjacency, builder.edges)
    assert len(gaps) == 1
    gap = gaps[0]
    assert (gap.descendant_id, gap.ancestor_id) == ("descendant", "ancestor")
    assert (gap.descendant_fragment, gap.ancestor_fragment) == (1, 0)
    assert gap.generations == 2
    assert not gap.recorded


def test_recorded_lineage_gap(builder):
    builder.person("founder", born="1100")
    builder.person("claimant", born="1500")
    builder.gap("claimant", "founder", generations=12)
    adjacency = builder.adjacency()

    fragments = detect_fragments(["founder", "claimant"], builder.people_by_id(), adjacency)
    gaps = find_lineage_gaps(fragments, adjacency, builder.edges)

    assert len(gaps) == 1
    assert gaps[0].recorded
    assert gaps[0].generations == 12
    assert gaps[0].relationship_id == builder.edges[0].id


def test_no_gap_within_one_fragment(small_family):
    people = small_family.people_by_id()
    adjacency = small_family.adjacency()
    fragments = detect_fragments(people, people, adjacency)
    assert find_lineage_gaps(fragments, adjacency, small_family.edges) == []
