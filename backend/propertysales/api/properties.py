# backend/propertysales/api/properties.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from propertysales.api.deps import get_app_settings, get_session, run_bounded
from propertysales.core.settings import Settings
from propertysales.schemas.property_sale import PropertyPage
from propertysales.services.property_query import search_properties
from propertysales.services.query_params import parse_property_query

router = APIRouter(prefix="/properties", tags=["properties"])


# ───────────────────────────────
# GET /properties
# ───────────────────────────────
@router.get("", response_model=PropertyPage)
async def list_properties(
    request: Request,
    # raw strings: validation happens in parse_property_query so bad input is a 400, not a 422
    page: Optional[str] = Query(None, description="1-based page, clamped to >= 1"),
    limit: Optional[str] = Query(None, description="page size, clamped to 1..100 (default 50)"),
    search: Optional[str] = Query(None, description="substring of address, county or eircode"),
    county: Optional[str] = Query(None, description="substring of county"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    year: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="id | price | saledate | year"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection", description="asc | desc"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """
    Paginated, filtered, sorted property sales.
    - filters are ANDed; search ORs across address/county/eircode
    - total is counted with the same filters
    """
    query = parse_property_query({
        "page": page, "limit": limit, "search": search, "county": county,
        "minPrice": min_price, "maxPrice": max_price, "year": year,
        "sortBy": sort_by, "sortDirection": sort_direction,
    })
    return await run_bounded(
        request, search_properties(session, query), timeout=settings.REQUEST_TIMEOUT_SECONDS
    )
