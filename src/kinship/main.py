"""
1) Load a family snapshot from JSON or a GEDCOM file.
2) Run the integrity check and report structural problems and date warnings.
3) Choose a scope: a house (optionally with cadet houses), the people around
   one person, or everyone.
4) Lay the scope out fragment by fragment.
5) Optionally label everyone relative to one person.
6) Export a preview of the layout.
"""

import argparse
import json
import logging
from pathlib import Path

from kinship.classifier import classify_all
from kinship.config import load_config
from kinship.graph import build_adjacency, build_graph
from kinship.layout import layout_scope
from kinship.models import PersonId, Snapshot
from kinship.parsing import load_gedcom
from kinship.plotting import plot_layout
from kinship.scope import ego_scope, house_scoped_people_ids
from kinship.snapshot import load_snapshot
from kinship.validation import run_integrity_check

GEDCOM_SUFFIXES = {".ged", ".gedcom"}


def load_any(path: Path) -> Snapshot:
    if path.suffix.lower() in GEDCOM_SUFFIXES:
        return load_gedcom(path)
    return load_snapshot(path)


def resolve_id(value: str, records) -> PersonId:
    """Match a command-line id against record ids, which may be ints or strings."""
    for record in records:
        if str(record.id) == value:
            return record.id
    raise ValueError(f"ID {value} not found in snapshot")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kinship", description="Kinship labels and family tree layout.")
    parser.add_argument("snapshot", type=Path, help="JSON snapshot or GEDCOM file")
    parser.add_argument("--config", type=Path, default=None, help="JSON configuration overrides")
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("--house", help="Lay out one house")
    scope.add_argument("--around", help="Lay out the people within --radius links of this person")
    parser.add_argument("--include-cadets", action="store_true", help="Include cadet houses with --house")
    parser.add_argument("--radius", type=int, default=2)
    parser.add_argument("--person", help="Label everyone relative to this person")
    parser.add_argument("--output", type=Path, default=None, help="Preview image (png, svg, pdf or dot)")
    parser.add_argument("--report", type=Path, default=None, help="Write the integrity report as JSON")
    parser.add_argument("--no-plot", action="store_true", help="Skip the preview")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    print(f"Loading snapshot: {args.snapshot}")
    snapshot = load_any(args.snapshot)
    print(
        f"  Found {len(snapshot.people)} people, {len(snapshot.relationships)} relationships "
        f"and {len(snapshot.houses)} houses"
    )

    print("Checking integrity...")
    report = run_integrity_check(snapshot)
    issues = {key: count for key, count in report.summary().items() if count}
    if issues:
        print(f"  Found issues: {issues}")
        for w in report.date_warnings[:10]:  # Show first 10 warnings
            print(f"    - {w}")
        if len(report.date_warnings) > 10:
            print(f"    ... and {len(report.date_warnings) - 10} more")
    else:
        print("  No integrity issues found")
    if args.report:
        with open(args.report, "w", encoding="utf-8") as fh:
            json.dump(report.to_dict(), fh, indent=2, default=str)
        print(f"  Report written to {args.report}")

    adjacency = build_adjacency(snapshot.people, snapshot.relationships, config.exclude_dissolved_marriages)

    if args.house:
        house_id = resolve_id(args.house, snapshot.houses)
        scoped_ids = house_scoped_people_ids(house_id, snapshot.people, snapshot.houses, adjacency, args.include_cadets)
        print(f"Scope: house {house_id} ({len(scoped_ids)} people)")
    elif args.around:
        center_id = resolve_id(args.around, snapshot.people)
        scoped_ids = ego_scope(build_graph(snapshot), center_id, args.radius)
        print(f"Scope: {args.radius} links around {center_id} ({len(scoped_ids)} people)")
    else:
        scoped_ids = {p.id for p in snapshot.people}
        print(f"Scope: everyone ({len(scoped_ids)} people)")

    print("Computing layout...")
    tree = layout_scope(scoped_ids, snapshot.people, adjacency, snapshot.relationships, config.layout)
    print(f"  {len(tree.positions)} cards in {len(tree.fragments)} fragments")
    for gap in tree.lineage_gaps:
        print(
            f"    - lineage gap: {gap.descendant_id} (fragment {gap.descendant_fragment}) descends from "
            f"{gap.ancestor_id} (fragment {gap.ancestor_fragment})"
        )

    people_by_id = snapshot.people_by_id()
    labels = None
    if args.person:
        person_id = resolve_id(args.person, snapshot.people)
        labels = classify_all(person_id, snapshot.people, adjacency, config.classifier)
        print(f"Relationships relative to {people_by_id[person_id].display_name}:")
        for pid, label in labels.items():
            print(f"    {people_by_id[pid].display_name}: {label}")

    if not args.no_plot:
        if args.output:
            print(f"Plotting layout to: {args.output}")
        plot_layout(tree, people_by_id, args.output, labels)

    print("Done!")


if __name__ == "__main__":
    main()
