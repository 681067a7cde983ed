"""GEDCOM import and partial-date handling."""

import logging
from pathlib import Path
import re

from ged4py import GedcomReader

from kinship.models import (
    ADOPTED_PARENT,
    FOSTER_PARENT,
    PARENT,
    ParentEdge,
    Person,
    Snapshot,
    SpouseEdge,
)

logger = logging.getLogger(__name__)

# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

SEX_MAP = {"M": "male", "F": "female"}

# GEDCOM PEDI values mapped to parent edge types and the child's legitimacy
PEDIGREE_MAP = {
    "adopted": (ADOPTED_PARENT, "adopted"),
    "foster": (FOSTER_PARENT, "foster"),
}


def extract_numeric_id(xref_id: str) -> int:
    """Extract numeric part from GEDCOM xref_id like '@I_347421849@' or 'I674624289'."""
    digits = re.sub(r"[^0-9]", "", xref_id)
    if not digits:
        raise ValueError(f"No numeric ID found in: {xref_id}")
    return int(digits)


def _format_partial(year: int, month: int | None = None, day: int | None = None) -> str | None:
    if month is None or month == 0:
        return f"{year:04d}"
    if not 1 <= month <= 12:
        return None
    if day is None or day == 0:
        return f"{year:04d}-{month:02d}"
    if not 1 <= day <= 31:
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_date_string(date_str: str | None) -> str | None:
    """
    Parse a free-form or GEDCOM date string into a partial ISO date.

    Precision is preserved: "1698" stays a year, "NOV 1954" becomes "1954-11"
    and "25 NOV 1954" becomes "1954-11-25". Partial ISO strings compare
    chronologically as plain strings. Returns None if the date cannot be parsed.

    Handles formats like:
    - "25 NOV 1954"
    - "1698" or "950"
    - "ABOUT 1905"
    - "JAN 1905"
    - "(01-27-1920)"
    - "(02 May1838)"
    - "(1839-08-29)" or "1746-00-00"
    - "(SEPT. 17,1910)"
    - "(May, 1837)"
    - "(1789?)"
    - "(Abt.  1798)"
    """
    if not date_str:
        return None

    s = str(date_str).strip()
    s = s.strip("()")
    s = s.rstrip("?")
    # Remove qualifiers (ABT, ABOUT, BEF, AFT, EST, CAL, AROUND, etc.) - with optional colon
    s = re.sub(
        r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|FROM|TO|BET\.?|AND|CIRCA|CA\.?|AROUND):?\s*",
        "",
        s,
        flags=re.IGNORECASE,
    )
    s = s.strip()

    if not s:
        return None

    # ISO and partial ISO: "1839-08-29", "1746-00-00", "1250-3", "1250"
    match = re.match(r"^(\d{1,4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?$", s)
    if match:
        year = int(match.group(1))
        month = int(match.group(2)) if match.group(2) else None
        day = int(match.group(3)) if match.group(3) else None
        return _format_partial(year, month, day)

    # "25 NOV 1954", "08 March 1893", "11 Aug. 1968", "02 May1838"
    match = re.match(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{3,4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(2).upper())
        if month:
            return _format_partial(int(match.group(3)), month, int(match.group(1)))

    # "NOV 1954", "November 1954", "May, 1837"
    match = re.match(r"^([A-Za-z]+)\.?,?\s*(\d{3,4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        if month:
            return _format_partial(int(match.group(2)), month)

    # "01-27-1920", "01/27/1920", "04 05 1911" (month first)
    match = re.match(r"^(\d{1,2})[-/\s](\d{1,2})[-/\s](\d{4})$", s)
    if match:
        return _format_partial(int(match.group(3)), int(match.group(1)), int(match.group(2)))

    # "April 17, 1850", "SEPT. 17,1910", "Oct.12,1929"
    match = re.match(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        if month:
            return _format_partial(int(match.group(3)), month, int(match.group(2)))

    return None


def normalize_partial_date(value) -> str | None:
    """Normalize a snapshot date value (int year or string) to a partial ISO date."""
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return _format_partial(value)
    parsed = parse_date_string(str(value))
    if parsed is None:
        logger.debug("Unparseable date %r treated as missing", value)
    return parsed


def parse_gedcom(filepath: Path) -> GedcomReader:
    """Parse a GEDCOM file and return the reader object."""
    return GedcomReader(str(filepath))


def extract_name_parts(indi) -> tuple[str | None, str | None]:
    """Extract given name and surname from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return (None, None)

    name_value = name_rec.value

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_value, tuple):
        given, surname, _suffix = name_value
        return (given or None, surname or None)

    # Fallback: string format "Given /Surname/"
    givn = name_rec.sub_tag("GIVN")
    surn = name_rec.sub_tag("SURN")
    if givn or surn:
        return (givn.value if givn else None, surn.value if surn else None)

    text = str(name_value).replace("/", "").strip()
    return (text or None, None)


def extract_event_date(rec, tag: str) -> str | None:
    """Extract the raw date string of an event tag (BIRT, DEAT, MARR, DIV)."""
    event = rec.sub_tag(tag)
    if event is None:
        return None

    date_rec = event.sub_tag("DATE")
    # ged4py may return DateValue objects
    if date_rec and date_rec.value:
        return str(date_rec.value)
    return None


def extract_gender(indi) -> str | None:
    """Extract gender from an individual record."""
    sex_rec = indi.sub_tag("SEX")
    if sex_rec is None or not sex_rec.value:
        return None
    return SEX_MAP.get(str(sex_rec.value).upper(), "other")


def extract_pedigrees(indi) -> dict[int, str]:
    """Map family id -> PEDI value for the families an individual is a child of."""
    pedigrees: dict[int, str] = {}
    for famc in indi.sub_tags("FAMC", follow=False):
        if not famc.value:
            continue
        pedi = famc.sub_tag("PEDI")
        if pedi is not None and pedi.value:
            pedigrees[extract_numeric_id(str(famc.value))] = str(pedi.value).lower()
    return pedigrees


def normalize_data(reader: GedcomReader) -> Snapshot:
    """
    Extract people and relationship edges from parsed GEDCOM data.
    Ignores non-standard Ancestry-specific tags (starting with _).
    """
    people: list[Person] = []
    relationships = []
    pedigrees: dict[tuple[int, int], str] = {}

    # First pass: extract all individuals
    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue

        indi_id = extract_numeric_id(rec.xref_id)
        given_name, surname = extract_name_parts(rec)
        indi_pedigrees = extract_pedigrees(rec)
        for fam_id, pedi in indi_pedigrees.items():
            pedigrees[(fam_id, indi_id)] = pedi

        legitimacy = "legitimate"
        statuses = {PEDIGREE_MAP[p][1] for p in indi_pedigrees.values() if p in PEDIGREE_MAP}
        if statuses:
            legitimacy = "adopted" if "adopted" in statuses else "foster"

        people.append(
            Person(
                id=indi_id,
                first_name=given_name,
                last_name=surname,
                date_of_birth=parse_date_string(extract_event_date(rec, "BIRT")),
                date_of_death=parse_date_string(extract_event_date(rec, "DEAT")),
                gender=extract_gender(rec),
                legitimacy_status=legitimacy,
            )
        )

    # Second pass: family records become spouse and parent edges
    edge_id = 0
    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue

        fam_id = extract_numeric_id(rec.xref_id)
        husb = rec.sub_tag("HUSB")
        wife = rec.sub_tag("WIFE")

        husb_id = extract_numeric_id(husb.xref_id) if husb and husb.xref_id else None
        wife_id = extract_numeric_id(wife.xref_id) if wife and wife.xref_id else None

        if husb_id and wife_id:
            divorced = rec.sub_tag("DIV") is not None
            edge_id += 1
            relationships.append(
                SpouseEdge(
                    id=edge_id,
                    person1_id=husb_id,
                    person2_id=wife_id,
                    marriage_status="divorced" if divorced else "married",
                    marriage_date=parse_date_string(extract_event_date(rec, "MARR")),
                    divorce_date=parse_date_string(extract_event_date(rec, "DIV")),
                )
            )

        for child in rec.sub_tags("CHIL"):
            if not child.xref_id:
                continue
            child_id = extract_numeric_id(child.xref_id)
            pedi = pedigrees.get((fam_id, child_id))
            relationship_type = PEDIGREE_MAP[pedi][0] if pedi in PEDIGREE_MAP else PARENT
            for parent_id in (husb_id, wife_id):
                if parent_id:
                    edge_id += 1
                    relationships.append(
                        ParentEdge(
                            id=edge_id,
                            person1_id=parent_id,
                            person2_id=child_id,
                            relationship_type=relationship_type,
                            biological_parent=relationship_type == PARENT,
                        )
                    )

    logger.debug("GEDCOM yielded %d people and %d edges", len(people), len(relationships))
    return Snapshot(people=tuple(people), relationships=tuple(relationships))


def load_gedcom(filepath: Path) -> Snapshot:
    """Read a GEDCOM file into a snapshot."""
    return normalize_data(parse_gedcom(filepath))
