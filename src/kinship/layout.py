"""Subtree layout: block widths, card positions and child line systems.

The layout runs in two passes over a generation list. The bottom-up pass
gives every unit (a person, plus their co-resident spouse) a block wide
enough for all of its descendants; the top-down pass centers each block's
children under it. Fragments are laid out one after another and stacked
vertically.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging

from kinship.config import LayoutConfig
from kinship.fragments import Bounds, Fragment, LineageGap, detect_fragments, find_lineage_gaps
from kinship.generations import assign_generations, generation_index
from kinship.graph import Adjacency
from kinship.models import Person, PersonId, RelationshipEdge, birth_sort_key

logger = logging.getLogger(__name__)

LEGITIMATE = "legitimate"
BASTARD = "bastard"
ADOPTED = "adopted"

# Legitimacy status -> connector line system
LINE_SYSTEMS = {
    "legitimate": LEGITIMATE,
    "unknown": LEGITIMATE,
    "bastard": BASTARD,
    "adopted": ADOPTED,
    "foster": ADOPTED,
}


@dataclass
class Placement:
    person_id: PersonId
    x: float
    y: float
    width: float
    height: float
    generation: int
    block_x: float
    block_width: float
    block_center_x: float
    fragment_index: int = 0
    # Set on a spouse card drawn inside their partner's block
    spouse_of: PersonId | None = None


@dataclass
class ChildLink:
    """The connector from a child up to the parent(s) it hangs from."""

    child_id: PersonId
    parent_ids: tuple[PersonId, ...]
    line_system: str
    origin_x: float
    origin_y: float
    offset_x: float = 0.0
    offset_y: float = 0.0

    @property
    def single_parent(self) -> bool:
        return len(self.parent_ids) == 1


@dataclass
class Layout:
    positions: dict[PersonId, Placement] = field(default_factory=dict)
    child_links: list[ChildLink] = field(default_factory=list)

    def bounds(self) -> Bounds | None:
        if not self.positions:
            return None
        return Bounds(
            min_x=min(p.x for p in self.positions.values()),
            min_y=min(p.y for p in self.positions.values()),
            max_x=max(p.x + p.width for p in self.positions.values()),
            max_y=max(p.y + p.height for p in self.positions.values()),
        )


@dataclass
class TreeLayout(Layout):
    fragments: list[Fragment] = field(default_factory=list)
    lineage_gaps: list[LineageGap] = field(default_factory=list)


def line_system_offsets(systems: Iterable[str], config: LayoutConfig) -> dict[str, tuple[float, float]]:
    """
    Horizontal and vertical connector offsets for the line systems present
    under one parent. A lone system stays centered; bastard lines always sit
    slightly higher.
    """
    present = set(systems)
    step = config.line_system_offset
    if len(present) == 3:
        horizontal = {BASTARD: -2 * step, LEGITIMATE: 0.0, ADOPTED: 2 * step}
    elif present == {LEGITIMATE, BASTARD}:
        horizontal = {LEGITIMATE: step, BASTARD: -step}
    elif present == {LEGITIMATE, ADOPTED}:
        horizontal = {LEGITIMATE: -step, ADOPTED: step}
    elif present == {BASTARD, ADOPTED}:
        horizontal = {BASTARD: -step, ADOPTED: step}
    else:
        horizontal = {}

    return {
        system: (horizontal.get(system, 0.0), -config.bastard_line_drop if system == BASTARD else 0.0)
        for system in present
    }


def _traces_to_root(person_id: PersonId, roots: set, parent_map: Mapping, cache: dict) -> bool:
    if person_id in cache:
        return cache[person_id]
    found = False
    seen: set = set()
    stack = [person_id]
    while stack:
        current = stack.pop()
        if current in roots:
            found = True
            break
        if current in seen:
            continue
        seen.add(current)
        stack.extend(parent_map.get(current, []))
    cache[person_id] = found
    return found


def ancestral_order_key(
    person_id: PersonId,
    people_by_id: Mapping[PersonId, Person],
    adjacency: Adjacency,
    roots: set,
    trace_cache: dict,
) -> tuple[int, ...]:
    """
    Birth-order positions from the root down to `person_id`.

    At each step the person's position among their parent's children is
    recorded, climbing through the parent that traces back to a root when
    there is more than one. Parentless people contribute 0.
    """
    chain: list[int] = []
    current = person_id
    seen: set = set()
    while current not in seen:
        seen.add(current)
        parents = [p for p in adjacency.parents(current) if p in people_by_id]
        if not parents:
            chain.append(0)
            break
        parent_id = parents[0]
        if len(parents) > 1:
            for candidate in parents:
                if _traces_to_root(candidate, roots, adjacency.parent_map, trace_cache):
                    parent_id = candidate
                    break
        siblings = sorted(
            (c for c in adjacency.children(parent_id) if c in people_by_id),
            key=lambda c: birth_sort_key(people_by_id[c]),
        )
        chain.append(siblings.index(current))
        current = parent_id
    return tuple(reversed(chain))


def _pad(keys: list[tuple]) -> list[tuple]:
    width = max((len(k) for k in keys), default=0)
    return [k + (0,) * (width - len(k)) for k in keys]


def compute_layout(
    generations: list[list[PersonId]],
    adjacency: Adjacency,
    people_by_id: Mapping[PersonId, Person],
    config: LayoutConfig | None = None,
    origin_y: float = 0.0,
    fragment_index: int = 0,
) -> Layout:
    """
    Position every person in `generations`.

    Only people in `generations` take part; parents outside it are ignored.
    A current spouse in the same generation with no parents of their own in
    the layout is drawn inside their partner's block.
    """
    cfg = config or LayoutConfig()
    layout = Layout()
    if not generations or not any(generations):
        return layout

    gen_of = generation_index(generations)
    pitch = cfg.card_height + cfg.generation_spacing

    def parents_placed(pid: PersonId) -> list[PersonId]:
        return [p for p in adjacency.parents(pid) if p in gen_of]

    # Units: a primary person plus at most one co-resident spouse
    partner_of: dict[PersonId, PersonId] = {}
    unit_of: dict[PersonId, PersonId] = {}
    for g, ids in enumerate(generations):
        for pid in ids:
            if pid in unit_of:
                continue
            unit_of[pid] = pid
            spouse_id = adjacency.spouse(pid)
            if spouse_id is None or gen_of.get(spouse_id) != g or spouse_id in unit_of:
                continue
            if not parents_placed(spouse_id):
                partner_of[pid] = spouse_id
                unit_of[spouse_id] = pid
            elif not parents_placed(pid):
                # The blood member owns the block
                del unit_of[pid]
                unit_of[spouse_id] = spouse_id
                partner_of[spouse_id] = pid
                unit_of[pid] = spouse_id

    primaries = [[pid for pid in ids if unit_of[pid] == pid] for ids in generations]

    # Children per unit, grouped by first recorded parent in the previous generation
    groups: dict[PersonId, dict[PersonId, list[PersonId]]] = {}
    unanchored: list[PersonId] = list(primaries[0])
    for g in range(1, len(generations)):
        for pid in primaries[g]:
            previous = [p for p in parents_placed(pid) if gen_of[p] == g - 1]
            if not previous:
                unanchored.append(pid)
                continue
            owner = unit_of[previous[0]]
            groups.setdefault(owner, {}).setdefault(previous[0], []).append(pid)

    roots = set(generations[0])
    trace_cache: dict = {}
    children: dict[PersonId, list[PersonId]] = {}
    for owner, by_parent in groups.items():
        group_parents = list(by_parent)
        keys = _pad([ancestral_order_key(p, people_by_id, adjacency, roots, trace_cache) for p in group_parents])
        ordered_parents = [p for _, p in sorted(zip(keys, group_parents), key=lambda kp: kp[0])]
        children[owner] = [
            child
            for parent_id in ordered_parents
            for child in sorted(by_parent[parent_id], key=lambda c: birth_sort_key(people_by_id[c]))
        ]

    def own_width(unit: PersonId) -> float:
        if unit in partner_of:
            return 2 * cfg.card_width + cfg.spouse_spacing
        return cfg.card_width

    def gap_after(child: PersonId) -> float:
        return cfg.branch_spacing if children.get(child) else cfg.sibling_spacing

    def children_span(unit: PersonId) -> float:
        kids = children.get(unit, [])
        return sum(width[k] for k in kids) + sum(gap_after(k) for k in kids[:-1])

    # Bottom-up widths
    width: dict[PersonId, float] = {}
    for g in range(len(generations) - 1, -1, -1):
        for unit in primaries[g]:
            width[unit] = max(own_width(unit), children_span(unit)) if children.get(unit) else own_width(unit)

    # Top-down positions; top-level units sit side by side centered on the anchor
    total = sum(width[u] for u in unanchored) + cfg.branch_spacing * (len(unanchored) - 1)
    cursor = cfg.anchor_x - total / 2
    stack: list[tuple[PersonId, float]] = []
    for unit in unanchored:
        stack.append((unit, cursor))
        cursor += width[unit] + cfg.branch_spacing

    while stack:
        unit, block_x = stack.pop()
        block_width = width[unit]
        center = block_x + block_width / 2
        g = gen_of[unit]
        y = origin_y + g * pitch

        spouse_id = partner_of.get(unit)
        if spouse_id is not None:
            x = center - cfg.card_width - cfg.spouse_spacing / 2
        else:
            x = center - cfg.card_width / 2
        layout.positions[unit] = Placement(
            unit, x, y, cfg.card_width, cfg.card_height, g, block_x, block_width, center, fragment_index
        )
        if spouse_id is not None:
            layout.positions[spouse_id] = Placement(
                spouse_id,
                x + cfg.card_width + cfg.spouse_spacing,
                y,
                cfg.card_width,
                cfg.card_height,
                g,
                block_x,
                block_width,
                center,
                fragment_index,
                spouse_of=unit,
            )

        kids = children.get(unit, [])
        child_x = center - children_span(unit) / 2
        for kid in kids:
            stack.append((kid, child_x))
            child_x += width[kid] + gap_after(kid)

    layout.child_links = _child_links(generations, gen_of, unit_of, layout.positions, adjacency, people_by_id, cfg)
    return layout


def _child_links(generations, gen_of, unit_of, positions, adjacency, people_by_id, cfg) -> list[ChildLink]:
    """One link per child with placed parents in the previous generation."""
    by_unit: dict[PersonId, list[ChildLink]] = {}
    for g in range(1, len(generations)):
        for child_id in generations[g]:
            parent_ids = tuple(p for p in adjacency.parents(child_id) if gen_of.get(p) == g - 1)
            if not parent_ids:
                continue
            centers = [positions[p].x + positions[p].width / 2 for p in parent_ids]
            bottom = max(positions[p].y + positions[p].height for p in parent_ids)
            status = people_by_id[child_id].legitimacy_status if child_id in people_by_id else LEGITIMATE
            link = ChildLink(
                child_id=child_id,
                parent_ids=parent_ids,
                line_system=LINE_SYSTEMS.get(status, LEGITIMATE),
                origin_x=sum(centers) / len(centers),
                origin_y=bottom,
            )
            by_unit.setdefault(unit_of[parent_ids[0]], []).append(link)

    links: list[ChildLink] = []
    for unit_links in by_unit.values():
        offsets = line_system_offsets((link.line_system for link in unit_links), cfg)
        for link in unit_links:
            link.offset_x, link.offset_y = offsets[link.line_system]
            links.append(link)
    return links


def layout_scope(
    scoped_ids: Iterable[PersonId],
    people: Iterable[Person],
    adjacency: Adjacency,
    edges: Iterable[RelationshipEdge],
    config: LayoutConfig | None = None,
) -> TreeLayout:
    """
    Lay out a scope fragment by fragment.

    Each fragment gets its own generations and layout, placed below the
    previous fragment's bounds plus `fragment_gap`.
    """
    cfg = config or LayoutConfig()
    people_by_id = {p.id: p for p in people}
    result = TreeLayout()

    result.fragments = detect_fragments(scoped_ids, people_by_id, adjacency)
    result.lineage_gaps = find_lineage_gaps(result.fragments, adjacency, list(edges))

    top = cfg.start_y
    for fragment in result.fragments:
        members = {pid: people_by_id[pid] for pid in fragment.member_ids}
        fragment.generations = assign_generations(members, adjacency, root_override=fragment.root_id)
        if not fragment.generations:
            logger.warning("Fragment %d has no generations; skipping", fragment.index)
            continue

        part = compute_layout(fragment.generations, adjacency, members, cfg, origin_y=top, fragment_index=fragment.index)
        result.positions.update(part.positions)
        result.child_links.extend(part.child_links)
        fragment.bounds = part.bounds()
        if fragment.bounds is not None:
            top = fragment.bounds.max_y + cfg.fragment_gap

    logger.info(
        "Laid out %d people in %d fragments (%d lineage gaps)",
        len(result.positions),
        len(result.fragments),
        len(result.lineage_gaps),
    )
    return result
