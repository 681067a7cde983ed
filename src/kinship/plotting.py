"""Preview export of a computed layout.

Cards are pinned at the positions the layout engine computed and drawn with
Graphviz's neato in no-layout mode, so the picture shows exactly what a
renderer would receive.
"""

from collections.abc import Mapping
from pathlib import Path

import pydot

from kinship.layout import ADOPTED, BASTARD, TreeLayout
from kinship.models import Person, PersonId

POINTS_PER_INCH = 72

LINE_STYLES = {
    BASTARD: "dashed",
    ADOPTED: "dotted",
}


def _node_name(person_id: PersonId) -> str:
    return f"person_{person_id}"


def _pos(x: float, y: float) -> str:
    # Graphviz y grows upwards
    return f"{x:.1f},{-y:.1f}!"


def card_label(person: Person, kinship: str | None = None) -> str:
    birth_year = person.date_of_birth[:4] if person.date_of_birth else ""
    death_year = person.date_of_death[:4] if person.date_of_death else ""
    label = f"{person.first_name or ''}\n{person.last_name or ''}\n{birth_year}-{death_year}"
    if kinship:
        label += f"\n({kinship})"
    return label


def build_preview_graph(
    layout: TreeLayout,
    people_by_id: Mapping[PersonId, Person],
    labels: Mapping[PersonId, str] | None = None,
) -> pydot.Dot:
    """
    Build a pydot graph with every card pinned in place.

    - Person cards are colored by gender
    - Couples in the same generation are joined by a marriage line
    - Each group of children hangs from a point node at its link origin,
      offset per line system (bastard dashed, adopted dotted)
    - Lineage gaps between fragments are dashed, labelled with the
      generation count when known
    """
    labels = labels or {}
    P = pydot.Dot(graph_type="digraph")
    P.set("splines", "line")
    P.set("outputorder", "edgesfirst")

    for pid, placement in layout.positions.items():
        person = people_by_id.get(pid)
        if person is None:
            continue

        if person.gender == "male":
            fillcolor = "lightblue"
        elif person.gender == "female":
            fillcolor = "lightpink"
        else:
            fillcolor = "lightgray"

        P.add_node(
            pydot.Node(
                _node_name(pid),
                label=card_label(person, labels.get(pid)),
                shape="box",
                style="rounded,filled",
                fillcolor=fillcolor,
                fontsize="10",
                fixedsize="true",
                width=f"{placement.width / POINTS_PER_INCH:.3f}",
                height=f"{placement.height / POINTS_PER_INCH:.3f}",
                pos=_pos(placement.x + placement.width / 2, placement.y + placement.height / 2),
            )
        )

    # Marriage lines
    drawn: set[frozenset] = set()
    for pid, placement in layout.positions.items():
        partner = placement.spouse_of
        if partner is None or partner not in layout.positions:
            continue
        key = frozenset((pid, partner))
        if key in drawn:
            continue
        drawn.add(key)
        P.add_edge(pydot.Edge(_node_name(partner), _node_name(pid), dir="none", color="darkgray", penwidth="2"))

    # Child links, one junction per parent set and line system
    junctions: dict[tuple, str] = {}
    for link in layout.child_links:
        if link.child_id not in layout.positions:
            continue
        child = layout.positions[link.child_id]
        key = (link.parent_ids, link.line_system)
        style = LINE_STYLES.get(link.line_system, "solid")

        if key not in junctions:
            name = f"union_{len(junctions)}"
            junctions[key] = name
            bar_y = (link.origin_y + child.y) / 2 + link.offset_y
            P.add_node(
                pydot.Node(name, shape="point", width="0.05", height="0.05", label="", pos=_pos(link.origin_x + link.offset_x, bar_y))
            )
            for parent_id in link.parent_ids:
                P.add_edge(pydot.Edge(_node_name(parent_id), name, dir="none", color="darkgray", style=style))

        P.add_edge(pydot.Edge(junctions[key], _node_name(link.child_id), color="darkgray", style=style))

    for gap in layout.lineage_gaps:
        if gap.ancestor_id not in layout.positions or gap.descendant_id not in layout.positions:
            continue
        label = f"{gap.generations} gen." if gap.generations else ""
        P.add_edge(
            pydot.Edge(
                _node_name(gap.ancestor_id),
                _node_name(gap.descendant_id),
                style="dashed",
                color="gray50",
                label=label,
                fontsize="8",
            )
        )

    return P


def plot_layout(
    layout: TreeLayout,
    people_by_id: Mapping[PersonId, Person],
    output_path: Path | None = None,
    labels: Mapping[PersonId, str] | None = None,
):
    """
    Render the layout with Graphviz.

    Args:
        layout: Positions, child links and lineage gaps from `layout_scope`
        people_by_id: Person records for card labels and colors
        output_path: Path to save the output image (PNG, SVG, PDF or DOT).
            If None, displays interactively.
        labels: Optional kinship labels shown under each name
    """
    P = build_preview_graph(layout, people_by_id, labels)
    prog = ["neato", "-n2"]

    if output_path:
        # Determine format from extension
        ext = output_path.suffix.lower().lstrip(".")
        if ext == "dot":
            P.write(str(output_path), format="raw")
        else:
            if ext not in ("png", "svg", "pdf"):
                ext = "png"
            P.write(str(output_path), format=ext, prog=prog)
        print(f"Layout saved to {output_path}")
    else:
        # Save to temporary file and display
        import tempfile

        import matplotlib.image as mpimg
        import matplotlib.pyplot as plt

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            P.write(f.name, format="png", prog=prog)
            img = mpimg.imread(f.name)
            plt.figure(figsize=(20, 16))
            plt.imshow(img)
            plt.axis("off")
            plt.tight_layout()
            plt.show()
