from kinship.layout import layout_scope
from kinship.plotting import build_preview_graph, card_label, plot_layout


def small_layout(family):
    return layout_scope(family.people_by_id(), family.people, family.adjacency(), family.edges)


def test_card_label(small_family):
    person = small_family.people_by_id()["A"]
    assert card_label(person) == "A\n\n1000-"
    assert card_label(person, "Father") == "A\n\n1000-\n(Father)"


def test_preview_graph(small_family):
    graph = build_preview_graph(small_layout(small_family), small_family.people_by_id())
    dot = graph.to_string()

    for pid in "ABCD":
        assert f"person_{pid}" in dot
    # One junction for the couple's child, one for the bastard line
    assert "union_0" in dot
    assert "union_1" in dot
    assert "union_2" not in dot
    assert "dashed" in dot
    assert "lightpink" in dot


def test_plot_layout_writes_dot(tmp_path, small_family):
    path = tmp_path / "tree.dot"
    plot_layout(small_layout(small_family), small_family.people_by_id(), path, {"C": "Self"})
    text = path.read_text(encoding="utf-8")
    assert "person_C" in text
    assert "Self" in text
