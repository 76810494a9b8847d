import pytest

from kardexcare.models import ServiceZone, User
from kardexcare.services.references import (
    derive_zone_short_form, zone_abbreviation, product_abbreviation, user_short_form
)


@pytest.mark.parametrize("name, expected", [
    ("Central Zone", "C"),
    ("South", "S"),
    ("north zone", "N"),
    ("West Zone", "W"),
    ("Pune", "P"),
    ("  bangalore ", "B"),
    ("", None),
])
def test_derive_zone_short_form(name, expected):
    assert derive_zone_short_form(name) == expected


def test_zone_abbreviation_fallbacks():
    assert zone_abbreviation(ServiceZone(name="South Zone", short_form="s")) == "S"
    assert zone_abbreviation(ServiceZone(name="mumbai")) == "M"
    assert zone_abbreviation(None) == "X"


@pytest.mark.parametrize("product_type, expected", [
    ("SPP", "SPP"),
    ("CONTRACT", "CON"),
    ("RELOCATION", "REL"),
    ("UPGRADE_KIT", "UPG"),
    ("SOFTWARE", "SFT"),
    ("retrofit", "RET"),
    (None, "GEN"),
])
def test_product_abbreviation(product_type, expected):
    assert product_abbreviation(product_type) == expected


def test_user_short_form_fallbacks():
    assert user_short_form(User(name="Ignored Name", short_form="rk")) == "RK"
    assert user_short_form(User(name="Ravi Kumar Shetty")) == "RK"
    assert user_short_form(User(name="Ravi")) == "RA"
    assert user_short_form(User(name="R")) == "XX"
    assert user_short_form(None) == "XX"
