import pytest

from kinship.models import ADOPTED_PARENT, PARENT, ParentEdge, SpouseEdge
from kinship.parsing import extract_numeric_id, load_gedcom, normalize_partial_date, parse_date_string


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("25 NOV 1954", "1954-11-25"),
        ("1698", "1698"),
        ("950", "0950"),
        ("ABOUT 1905", "1905"),
        ("Abt.  1798", "1798"),
        ("JAN 1905", "1905-01"),
        ("(01-27-1920)", "1920-01-27"),
        ("(02 May1838)", "1838-05-02"),
        ("(1839-08-29)", "1839-08-29"),
        ("1746-00-00", "1746"),
        ("(SEPT. 17,1910)", "1910-09-17"),
        ("(May, 1837)", "1837-05"),
        ("(1789?)", "1789"),
        ("April 17, 1850", "1850-04-17"),
        ("", None),
        (None, None),
        ("sometime", None),
        ("1900-13-01", None),
    ],
)
def test_parse_date_string(raw, expected):
    assert parse_date_string(raw) == expected


def test_partial_dates_sort_chronologically():
    dates = [parse_date_string(d) for d in ("1 JAN 1900", "1899", "DEC 1899", "950")]
    assert sorted(dates) == ["0950", "1899", "1899-12", "1900-01-01"]


def test_normalize_partial_date():
    assert normalize_partial_date(1250) == "1250"
    assert normalize_partial_date("1250-3") == "1250-03"
    assert normalize_partial_date("") is None
    assert normalize_partial_date("unknown") is None


def test_extract_numeric_id():
    assert extract_numeric_id("@I_347421849@") == 347421849
    assert extract_numeric_id("I674624289") == 674624289
    with pytest.raises(ValueError):
        extract_numeric_id("@FAM@")


GEDCOM = """0 HEAD
1 CHAR UTF-8
1 GEDC
2 VERS 5.5.1
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 1900
0 @I2@ INDI
1 NAME Mary /Jones/
1 SEX F
1 BIRT
2 DATE 1902
0 @I3@ INDI
1 NAME Ann /Smith/
1 SEX F
1 BIRT
2 DATE 1925
1 FAMC @F1@
0 @I4@ INDI
1 NAME Tom /Smith/
1 SEX M
1 FAMC @F1@
2 PEDI adopted
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 MARR
2 DATE 1921
1 CHIL @I3@
1 CHIL @I4@
0 TRLR
"""


def test_load_gedcom(tmp_path):
    path = tmp_path / "family.ged"
    path.write_text(GEDCOM, encoding="utf-8")
    snapshot = load_gedcom(path)
    people = snapshot.people_by_id()

    assert set(people) == {1, 2, 3, 4}
    assert (people[1].first_name, people[1].last_name) == ("John", "Smith")
    assert people[1].gender == "male"
    assert people[2].gender == "female"
    assert people[1].date_of_birth == "1900"
    assert people[4].legitimacy_status == "adopted"

    spouses = [e for e in snapshot.relationships if isinstance(e, SpouseEdge)]
    assert [(e.person1_id, e.person2_id, e.marriage_date) for e in spouses] == [(1, 2, "1921")]

    parents = {(e.person1_id, e.person2_id): e.relationship_type for e in snapshot.relationships if isinstance(e, ParentEdge)}
    assert parents == {
        (1, 3): PARENT,
        (2, 3): PARENT,
        (1, 4): ADOPTED_PARENT,
        (2, 4): ADOPTED_PARENT,
    }
