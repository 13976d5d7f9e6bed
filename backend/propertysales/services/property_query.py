# backend/propertysales/services/property_query.py
"""WHERE/ORDER BY construction and the paginated fetch behind ``GET /properties``."""
from __future__ import annotations

import logging
from typing import Dict, List

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertysales.core.errors import translate_db_errors
from propertysales.models.property_sale import PropertySale
from propertysales.schemas.property_sale import (
    PropertyFilters,
    PropertyPage,
    PropertyQuery,
    PropertySaleRecord,
    PropertySorting,
)

logger = logging.getLogger(__name__)

# the only identifiers that ever reach ORDER BY
SORT_COLUMNS: Dict[str, ColumnElement] = {
    "id": PropertySale.id,
    "price": PropertySale.price,
    "saledate": PropertySale.sale_date,
    "year": PropertySale.year,
}


def build_predicates(query: PropertyQuery) -> List[ColumnElement[bool]]:
    """Filter bundle -> list of predicates (ANDed by the caller). Values stay bound parameters."""
    preds: List[ColumnElement[bool]] = []

    if query.search:
        preds.append(
            or_(
                PropertySale.address.icontains(query.search, autoescape=True),
                PropertySale.county.icontains(query.search, autoescape=True),
                PropertySale.eircode.icontains(query.search, autoescape=True),
            )
        )
    if query.county:
        preds.append(PropertySale.county.icontains(query.county, autoescape=True))
    if query.min_price is not None:
        preds.append(PropertySale.price >= query.min_price)
    if query.max_price is not None:
        preds.append(PropertySale.price <= query.max_price)
    if query.year is not None:
        preds.append(PropertySale.year == query.year)
    return preds


def order_by_clause(query: PropertyQuery) -> List[ColumnElement]:
    col = SORT_COLUMNS[query.sort_by]
    primary = col.asc() if query.sort_direction == "asc" else col.desc()
    if query.sort_by == "id":
        return [primary]
    # id tiebreak keeps LIMIT/OFFSET pages stable
    tiebreak = PropertySale.id.asc() if query.sort_direction == "asc" else PropertySale.id.desc()
    return [primary, tiebreak]


async def search_properties(session: AsyncSession, query: PropertyQuery) -> PropertyPage:
    """COUNT + one page of rows over the same predicates.

    The two statements are separate round trips without a shared transaction.
    """
    preds = build_predicates(query)

    count_stmt = select(func.count()).select_from(PropertySale).where(*preds)
    page_stmt = (
        select(PropertySale)
        .where(*preds)
        .order_by(*order_by_clause(query))
        .limit(query.limit)
        .offset(query.offset)
    )

    with translate_db_errors("GET /properties"):
        total = (await session.execute(count_stmt)).scalar_one()
        rows = (await session.execute(page_stmt)).scalars().all()

    logger.debug(
        "properties page=%s limit=%s total=%s returned=%s", query.page, query.limit, total, len(rows)
    )

    return PropertyPage(
        properties=[PropertySaleRecord.model_validate(r) for r in rows],
        total=int(total),
        page=query.page,
        limit=query.limit,
        filters=PropertyFilters(
            search=query.search,
            county=query.county,
            min_price=query.min_price,
            max_price=query.max_price,
            year=query.year,
        ),
        sorting=PropertySorting(field=query.sort_by, direction=query.sort_direction),
    )
