# backend/propertysales/api/trends.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from propertysales.api.deps import get_app_settings, get_session, run_bounded
from propertysales.core.settings import Settings
from propertysales.schemas.property_sale import MonthlyComparison, TrendSummary
from propertysales.services.query_params import optional_year
from propertysales.services.statistics import monthly_price_comparison, recent_price_trend

router = APIRouter(tags=["trends"])


@router.get("/trends", response_model=TrendSummary)
async def trends(
    request: Request,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """Average / median price and sale count over the trailing 30 days."""
    return await run_bounded(
        request, recent_price_trend(session), timeout=settings.REQUEST_TIMEOUT_SECONDS
    )


@router.get("/price-comparison", response_model=List[MonthlyComparison])
async def price_comparison(
    request: Request,
    year: Optional[str] = Query(None, description="calendar year, defaults to COMPARISON_YEAR"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """Monthly average price, comparison county (Dublin) vs the rest of the country."""
    target_year = optional_year("year", year)
    if target_year is None:
        target_year = settings.COMPARISON_YEAR
    return await run_bounded(
        request,
        monthly_price_comparison(session, target_year, county=settings.COMPARISON_COUNTY),
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
    )
