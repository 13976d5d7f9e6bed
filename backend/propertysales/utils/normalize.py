"""Utility helpers for normalising Property Price Register CSV fields."""
from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

# "€" as UTF-8, the cp1252 byte 0x80 read as latin-1, and UTF-8 "€" read as latin-1
EURO_VARIANTS = ("€", "\x80", "â\u0082¬")

_SPACE_RE = re.compile(r"\s+")
_TRAILING_ZERO_CENTS_RE = re.compile(r"\.00$")


def none_if_blank(value: object) -> Optional[str]:
    """Trimmed string, or ``None`` for missing/blank input."""
    if value is None:
        return None
    s = str(value).strip()
    return s if s != "" else None


def clean_price_text(value: Optional[str]) -> str:
    """Strip currency symbols, whitespace, thousands separators and a trailing ``.00``."""
    if not value:
        return ""
    s = str(value)
    for symbol in EURO_VARIANTS:
        s = s.replace(symbol, "")
    s = _SPACE_RE.sub("", s).replace(",", "")
    return _TRAILING_ZERO_CENTS_RE.sub("", s)


def parse_price(value: Optional[str]) -> Optional[Decimal]:
    """"€350,000.00" -> Decimal("350000").

    ``None`` when the text is not a finite number or is not positive
    (a zero price is bad data, not a free transfer).
    """
    cleaned = clean_price_text(value)
    if cleaned == "":
        return None
    try:
        price = Decimal(cleaned)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def dmy_to_date(value: Optional[str]) -> Optional[date]:
    """Convert a register ``dd/mm/yyyy`` string into :class:`datetime.date`."""
    s = none_if_blank(value)
    if s is None:
        return None
    for fmt in ("%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y"):
        try:
            return datetime.strptime(s[:10], fmt).date()
        except ValueError:
            continue
    return None


def compose_full_address(address: str, county: Optional[str]) -> str:
    return f"{address}, {county}" if county else address
