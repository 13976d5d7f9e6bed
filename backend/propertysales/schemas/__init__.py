from .property_sale import (
    MonthlyComparison,
    PropertyFilters,
    PropertyPage,
    PropertyQuery,
    PropertySaleRecord,
    PropertySorting,
    TrendSummary,
)

__all__ = [
    "MonthlyComparison",
    "PropertyFilters",
    "PropertyPage",
    "PropertyQuery",
    "PropertySaleRecord",
    "PropertySorting",
    "TrendSummary",
]
