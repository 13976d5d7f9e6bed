# backend/propertysales/services/statistics.py
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from statistics import fmean, median as _median
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import case, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propertysales.core.errors import translate_db_errors
from propertysales.models.property_sale import PropertySale
from propertysales.schemas.property_sale import MonthlyComparison, TrendSummary

logger = logging.getLogger(__name__)

TREND_WINDOW_DAYS = 30
FETCH_PAGE_SIZE = 1000

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def mean(values: Sequence[float]) -> float:
    return fmean(values) if values else 0.0


def median(values: Sequence[float]) -> float:
    """Middle value; mean of the two middle values for an even count. 0 for no values."""
    return _median(values) if values else 0.0


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


async def _fetch_all_prices(session: AsyncSession, *preds) -> List[float]:
    """Keyset-paged price fetch so the result is never a truncated first page."""
    prices: List[float] = []
    last_id = 0
    while True:
        stmt = (
            select(PropertySale.id, PropertySale.price)
            .where(PropertySale.id > last_id, *preds)
            .order_by(PropertySale.id)
            .limit(FETCH_PAGE_SIZE)
        )
        rows = (await session.execute(stmt)).all()
        if not rows:
            break
        prices.extend(float(price) for _, price in rows)
        last_id = rows[-1][0]
        if len(rows) < FETCH_PAGE_SIZE:
            break
    return prices


async def recent_price_trend(
    session: AsyncSession,
    now: Optional[datetime] = None,
    days: int = TREND_WINDOW_DAYS,
) -> TrendSummary:
    """Average/median/count of sales dated within the trailing ``days`` window."""
    now = now or datetime.now()
    cutoff = (now - timedelta(days=days)).date()

    with translate_db_errors("GET /trends"):
        prices = await _fetch_all_prices(session, PropertySale.sale_date >= cutoff)

    timeframe = f"Last {days} days"
    if not prices:
        return TrendSummary(average_price=0, median_price=0, total_sales=0, timeframe=timeframe)

    return TrendSummary(
        average_price=mean(prices),
        median_price=median(prices),
        total_sales=len(prices),
        timeframe=timeframe,
    )


async def monthly_price_comparison(
    session: AsyncSession,
    year: int,
    county: str = "Dublin",
) -> List[MonthlyComparison]:
    """12 calendar-ordered entries: average price in ``county`` vs every other county.

    County match is exact and case-sensitive; rows without a county are left out.
    Months with no sales report 0.
    """
    month_col = extract("month", PropertySale.sale_date)
    group_col = case((PropertySale.county == county, "dublin"), else_="other")

    stmt = (
        select(month_col.label("sale_month"), group_col.label("grp"), func.avg(PropertySale.price))
        .where(
            PropertySale.sale_date >= date(year, 1, 1),
            PropertySale.sale_date <= date(year, 12, 31),
            PropertySale.county.is_not(None),
        )
        # by label: a re-rendered CASE would carry fresh bind params and not match on PostgreSQL
        .group_by("sale_month", "grp")
    )

    with translate_db_errors("GET /price-comparison"):
        rows = (await session.execute(stmt)).all()

    averages: Dict[Tuple[int, str], float] = {
        (int(m), grp): float(avg) for m, grp, avg in rows if avg is not None
    }

    out: List[MonthlyComparison] = []
    for m in range(1, 13):
        dublin = averages.get((m, "dublin"), 0.0)
        other = averages.get((m, "other"), 0.0)
        out.append(MonthlyComparison(
            month=f"{_MONTH_ABBR[m - 1]} {year}",
            dublin=round_half_up(dublin),
            other=round_half_up(other),
        ))
    logger.debug("price comparison year=%s county=%s groups=%s", year, county, len(averages))
    return out
