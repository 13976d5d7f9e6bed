# backend/propertysales/schemas/property_sale.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel

VAT_RATE_NEW = 0.135  # VAT on new dwellings (display only)

SortField = Literal["id", "price", "saledate", "year"]
SortDirection = Literal["asc", "desc"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def is_new_property(description: Optional[str]) -> bool:
    """Display heuristic: the register marks new builds as "New Dwelling house /Apartment"."""
    return bool(description) and "new" in description.lower()


# ───── rows ─────
class PropertySaleRecord(_CamelModel):
    """Typed view of one ``property_sale`` row (validated at the DB boundary)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    sale_date: date
    address: str
    eircode: Optional[str] = None
    price: float
    year: int
    county: Optional[str] = None
    full_address: str = ""
    description: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="condition")
    @property
    def condition(self) -> str:
        return "New" if is_new_property(self.description) else "Second-Hand"

    @computed_field(alias="priceInclVat")
    @property
    def price_incl_vat(self) -> float:
        if is_new_property(self.description):
            return round(self.price * (1 + VAT_RATE_NEW), 2)
        return self.price


# ───── /properties ─────
class PropertyQuery(BaseModel):
    """Validated parameter bundle for the listing query."""

    page: int = 1
    limit: int = 50
    search: Optional[str] = None
    county: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    year: Optional[int] = None
    sort_by: SortField = "id"
    sort_direction: SortDirection = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PropertyFilters(_CamelModel):
    search: Optional[str] = None
    county: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    year: Optional[int] = None


class PropertySorting(_CamelModel):
    field: SortField
    direction: SortDirection


class PropertyPage(_CamelModel):
    properties: List[PropertySaleRecord]
    total: int
    page: int
    limit: int
    filters: PropertyFilters
    sorting: PropertySorting


# ───── statistics ─────
class TrendSummary(_CamelModel):
    average_price: float
    median_price: float
    total_sales: int
    timeframe: str


class MonthlyComparison(_CamelModel):
    month: str   # "Jan 2024"
    dublin: int  # average price of the comparison county
    other: int   # average price of every other county
