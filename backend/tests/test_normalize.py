from datetime import date
from decimal import Decimal

import pytest

from propertysales.utils.normalize import (
    clean_price_text,
    compose_full_address,
    dmy_to_date,
    none_if_blank,
    parse_price,
)


@pytest.mark.parametrize("raw", [
    "€350,000.00",
    "\x80350,000.00",          # cp1252 euro byte read as latin-1
    "â\x82¬350,000.00",        # UTF-8 euro read as latin-1
    " € 350,000.00 ",
    "350000",
])
def test_price_variants_normalize_to_the_same_number(raw):
    assert parse_price(raw) == Decimal("350000")


def test_price_keeps_real_cents():
    assert parse_price("€1,234.56") == Decimal("1234.56")


@pytest.mark.parametrize("raw", ["€0.00", "0", "", None, "€", "n/a", "-5", "NaN", "Infinity"])
def test_unusable_prices_are_rejected(raw):
    assert parse_price(raw) is None


def test_clean_price_text_only_drops_trailing_zero_cents():
    assert clean_price_text("€1,000.00") == "1000"
    assert clean_price_text("€1,000.50") == "1000.50"


def test_dmy_dates():
    assert dmy_to_date("05/01/2024") == date(2024, 1, 5)
    assert dmy_to_date("31/12/2010") == date(2010, 12, 31)
    assert dmy_to_date("2024-01-05") is None
    assert dmy_to_date("31/02/2024") is None
    assert dmy_to_date("") is None


def test_none_if_blank_and_full_address():
    assert none_if_blank("  ") is None
    assert none_if_blank(" D04 ") == "D04"
    assert compose_full_address("1 Main St", "Cork") == "1 Main St, Cork"
    assert compose_full_address("1 Main St", None) == "1 Main St"
