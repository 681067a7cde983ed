import pytest

from factories import FamilyBuilder


@pytest.fixture
def builder():
    return FamilyBuilder()


@pytest.fixture
def royal_family():
    """
    Four generations under grandpa and grandma.

    grandpa + grandma
    ├── father + mother
    │   ├── ego + wife
    │   │   └── kid
    │   │       └── grandkid
    │   ├── sister (twin of twin)
    │   │   └── niece
    │   ├── twin
    │   └── bastard (father only)
    └── aunt + uncle
        └── cousin
            └── cousin_kid
    """
    f = FamilyBuilder()
    f.person("grandpa", "male", "1900")
    f.person("grandma", "female", "1902")
    f.person("father", "male", "1925")
    f.person("mother", "female", "1926")
    f.person("aunt", "female", "1927")
    f.person("uncle", "male", "1925")
    f.person("ego", "male", "1950")
    f.person("wife", "female", "1951")
    f.person("sister", "female", "1952-03-01")
    f.person("twin", "female", "1952-03-01")
    f.person("bastard", "male", "1955", legitimacy_status="bastard")
    f.person("cousin", "female", "1955")
    f.person("kid", "male", "1975")
    f.person("niece", "female", "1980")
    f.person("cousin_kid", "male", "1980")
    f.person("grandkid", "female", "2000")

    f.marry("grandpa", "grandma")
    f.marry("father", "mother")
    f.marry("uncle", "aunt")
    f.marry("ego", "wife")
    f.twins("sister", "twin")

    f.child("father", "grandpa", "grandma")
    f.child("aunt", "grandpa", "grandma")
    f.child("ego", "father", "mother")
    f.child("sister", "father", "mother")
    f.child("twin", "father", "mother")
    f.child("bastard", "father")
    f.child("cousin", "aunt", "uncle")
    f.child("kid", "ego", "wife")
    f.child("niece", "sister")
    f.child("cousin_kid", "cousin")
    f.child("grandkid", "kid")
    return f


@pytest.fixture
def small_family():
    """A and B married; C their daughter; D a bastard son of A alone."""
    f = FamilyBuilder()
    f.person("A", "male", "1000")
    f.person("B", "female", "1002")
    f.person("C", "female", "1020")
    f.person("D", "male", "1022", legitimacy_status="bastard")
    f.marry("A", "B")
    f.child("C", "A", "B")
    f.child("D", "A")
    return f
