"""Analytics endpoint module.

One endpoint per window-function analysis, plus the derived insights and
the Markdown report.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.database.database import get_db
from retail_api.schemas.analytics import (
    TopProductsResponse,
    RunningTotalsResponse,
    GrowthResponse,
    SpendingQuartilesResponse,
    MovingAverageResponse,
)
from retail_api.schemas.insights import InsightsReport
from retail_api.services.analytics_service import (
    top_products_by_region_quarter,
    monthly_running_totals,
    month_over_month_growth,
    customer_spending_quartiles,
    moving_averages,
)
from retail_api.services.insights_service import generate_insights
from retail_api.services.report_service import render_markdown

router = APIRouter(prefix="/analytics", tags=["analytics"])

REGION_QUERY = Query(default=None, description="Restrict to one region (e.g. Kigali)")


@router.get("/top-products", response_model=TopProductsResponse)
async def get_top_products(
    top_n: Optional[int] = Query(
        default=None,
        ge=1,
        le=100,
        description="Rank cut-off per region and quarter (default from settings)",
    ),
    region: Optional[str] = REGION_QUERY,
    db: AsyncSession = Depends(get_db),
) -> TopProductsResponse:
    """
    Top products by revenue for every region and quarter.

    RANK() OVER (PARTITION BY region, year, quarter ORDER BY revenue DESC).
    Ties share a rank, so a partition can return more than **top_n** rows.
    """
    return await top_products_by_region_quarter(db=db, top_n=top_n, region=region)


@router.get("/running-totals", response_model=RunningTotalsResponse)
async def get_running_totals(
    region: Optional[str] = REGION_QUERY,
    db: AsyncSession = Depends(get_db),
) -> RunningTotalsResponse:
    """Monthly sales and their cumulative running total."""
    return await monthly_running_totals(db=db, region=region)


@router.get("/growth", response_model=GrowthResponse)
async def get_growth(
    region: Optional[str] = REGION_QUERY,
    db: AsyncSession = Depends(get_db),
) -> GrowthResponse:
    """Month-over-month growth percentage computed from LAG()."""
    return await month_over_month_growth(db=db, region=region)


@router.get("/spending-quartiles", response_model=SpendingQuartilesResponse)
async def get_spending_quartiles(
    buckets: Optional[int] = Query(
        default=None,
        ge=1,
        le=100,
        description="Number of NTILE buckets (default: 4)",
    ),
    db: AsyncSession = Depends(get_db),
) -> SpendingQuartilesResponse:
    """Customers bucketed by total spend, bucket 1 holding the top spenders."""
    return await customer_spending_quartiles(db=db, buckets=buckets)


@router.get("/moving-averages", response_model=MovingAverageResponse)
async def get_moving_averages(
    window: Optional[int] = Query(
        default=None,
        ge=1,
        le=24,
        description="Frame size in months (default: 3)",
    ),
    region: Optional[str] = REGION_QUERY,
    db: AsyncSession = Depends(get_db),
) -> MovingAverageResponse:
    """Trailing moving average of monthly sales."""
    return await moving_averages(db=db, window=window, region=region)


@router.get("/insights", response_model=InsightsReport)
async def get_insights(
    db: AsyncSession = Depends(get_db),
) -> InsightsReport:
    """Business insights together with the five result sets."""
    return await generate_insights(db=db)


@router.get("/report", response_class=PlainTextResponse)
async def get_report(
    db: AsyncSession = Depends(get_db),
) -> PlainTextResponse:
    """The insights report rendered as a Markdown document."""
    report = await generate_insights(db=db)
    return PlainTextResponse(render_markdown(report), media_type="text/markdown")
