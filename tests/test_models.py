from kinship.models import Person, birth_sort_key, sortable_date


def test_sortable_date_pads_short_years():
    assert sortable_date("900") == "0900"
    assert sortable_date("87-03") == "0087-03"
    assert sortable_date("1066-10-14") == "1066-10-14"
    assert sortable_date(None) is None
    assert sortable_date("") == ""


def test_birth_sort_key_orders_three_digit_years_first():
    people = [
        Person("b", date_of_birth="1000"),
        Person("undated"),
        Person("a", date_of_birth="900"),
        Person("c", date_of_birth="1000-02"),
    ]
    assert [p.id for p in sorted(people, key=birth_sort_key)] == ["a", "b", "c", "undated"]
    assert birth_sort_key(None) == (True, "")
