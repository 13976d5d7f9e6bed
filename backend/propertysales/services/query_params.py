# backend/propertysales/services/query_params.py
"""Raw query-string -> PropertyQuery.

Clamping never fails (page/limit); allow-list and numeric checks raise
QueryValidationError, which the API renders as 400.
"""
from __future__ import annotations

import math
import re
from typing import Mapping, Optional

from propertysales.core.errors import QueryValidationError
from propertysales.schemas.property_sale import PropertyQuery

VALID_SORT_FIELDS = ("id", "price", "saledate", "year")
VALID_SORT_DIRECTIONS = ("asc", "desc")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 100
# keeps (page - 1) * limit inside a signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_LIMIT

MIN_YEAR = 1
MAX_YEAR = 9999

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s if s != "" else None


def _leading_int(v: Optional[str]) -> Optional[int]:
    """"12" -> 12, "2.7" -> 2, "abc" -> None."""
    s = _blank_to_none(v)
    if s is None:
        return None
    m = _LEADING_INT_RE.match(s)
    return int(m.group(1)) if m else None


def clamp_page(v: Optional[str]) -> int:
    n = _leading_int(v)
    if n is None:
        return DEFAULT_PAGE
    return min(MAX_PAGE, max(1, n))


def clamp_limit(v: Optional[str]) -> int:
    n = _leading_int(v)
    if n is None:
        return DEFAULT_LIMIT
    return min(MAX_LIMIT, max(1, n))


def optional_float(name: str, v: Optional[str]) -> Optional[float]:
    s = _blank_to_none(v)
    if s is None:
        return None
    try:
        n = float(s)
    except ValueError:
        raise QueryValidationError(f"Invalid {name}: {s!r} is not a number") from None
    if not math.isfinite(n):
        raise QueryValidationError(f"Invalid {name}: {s!r} is not a finite number")
    return n


def optional_int(name: str, v: Optional[str]) -> Optional[int]:
    s = _blank_to_none(v)
    if s is None:
        return None
    try:
        return int(s)
    except ValueError:
        raise QueryValidationError(f"Invalid {name}: {s!r} is not an integer") from None


def optional_year(name: str, v: Optional[str]) -> Optional[int]:
    n = optional_int(name, v)
    if n is not None and not MIN_YEAR <= n <= MAX_YEAR:
        raise QueryValidationError(f"Invalid {name}: {n} is outside {MIN_YEAR}..{MAX_YEAR}")
    return n


def _choice(name: str, v: Optional[str], allowed: tuple, default: str) -> str:
    s = _blank_to_none(v)
    if s is None:
        return default
    lowered = s.lower()
    if lowered not in allowed:
        raise QueryValidationError(f"Invalid {name}. Must be one of: {', '.join(allowed)}")
    return lowered


def parse_property_query(raw: Mapping[str, Optional[str]]) -> PropertyQuery:
    """Validate the ``/properties`` query string into a typed bundle."""
    return PropertyQuery(
        page=clamp_page(raw.get("page")),
        limit=clamp_limit(raw.get("limit")),
        search=_blank_to_none(raw.get("search")),
        county=_blank_to_none(raw.get("county")),
        min_price=optional_float("minPrice", raw.get("minPrice")),
        max_price=optional_float("maxPrice", raw.get("maxPrice")),
        year=optional_year("year", raw.get("year")),
        sort_by=_choice("sort field", raw.get("sortBy"), VALID_SORT_FIELDS, "id"),
        sort_direction=_choice("sort direction", raw.get("sortDirection"), VALID_SORT_DIRECTIONS, "desc"),
    )
