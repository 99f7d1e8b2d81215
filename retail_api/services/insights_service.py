"""Business insights service module.

Turns the five window-function result sets into short findings for a
business audience:

- Regional leaders: which product tops each region in the latest quarter
- Revenue trajectory: total revenue, best and worst month
- Growth extremes: strongest month-over-month increase and sharpest decline
- Spend concentration: share of revenue held by the top spending bucket
- Trend direction: least-squares slope over the moving-average series
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

import numpy as np
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.schemas.analytics import (
    TopProductsResponse,
    RunningTotalsResponse,
    GrowthResponse,
    SpendingQuartilesResponse,
    MovingAverageResponse,
)
from retail_api.schemas.insights import Insight, InsightsReport
from retail_api.services.analytics_service import (
    top_products_by_region_quarter,
    monthly_running_totals,
    month_over_month_growth,
    customer_spending_quartiles,
    moving_averages,
)
from retail_api.services.cache import cached

logger = logging.getLogger(__name__)

# Slope below this share of the mean monthly level counts as flat
FLAT_TREND_THRESHOLD = 0.01


def _fmt_money(value: float) -> str:
    return f"{value:,.2f}"


def _join_names(names: list[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + " and " + names[-1]


def regional_leaders_insight(top_products: TopProductsResponse) -> Optional[Insight]:
    """Rank-1 products per region in the latest quarter, plus the most frequent leader."""
    leaders = [item for item in top_products.items if item.rank == 1]
    if not leaders:
        return None

    latest_year, latest_quarter = max((item.year, item.quarter) for item in leaders)
    latest = [i for i in leaders if (i.year, i.quarter) == (latest_year, latest_quarter)]
    per_region: dict[str, list[str]] = defaultdict(list)
    for item in latest:
        per_region[item.region].append(item.product_name)
    latest_text = "; ".join(
        f"{region}: {' / '.join(names)}" for region, names in sorted(per_region.items())
    )

    # Most frequent leader, revenue as tie-breaker
    partitions = {(i.region, i.year, i.quarter) for i in leaders}
    lead_counts: dict[str, int] = defaultdict(int)
    lead_revenue: dict[str, float] = defaultdict(float)
    for item in leaders:
        lead_counts[item.product_name] += 1
        lead_revenue[item.product_name] += item.revenue
    top_leader = max(lead_counts, key=lambda name: (lead_counts[name], lead_revenue[name]))

    return Insight(
        topic="regional_leaders",
        title=f"{top_leader} is the most frequent regional best-seller",
        detail=(
            f"{top_leader} ranks first in {lead_counts[top_leader]} of {len(partitions)} "
            f"region-quarter partitions. Leaders in Q{latest_quarter} {latest_year}: {latest_text}."
        ),
    )


def revenue_trajectory_insight(running_totals: RunningTotalsResponse) -> Optional[Insight]:
    """Total revenue over the period with the best and worst months."""
    if not running_totals.items:
        return None

    items = running_totals.items
    best = max(items, key=lambda i: i.monthly_total)
    worst = min(items, key=lambda i: i.monthly_total)
    total = items[-1].running_total
    return Insight(
        topic="revenue_trajectory",
        title=f"{_fmt_money(total)} in revenue across {len(items)} month(s)",
        detail=(
            f"Cumulative sales reached {_fmt_money(total)} by {items[-1].month}. "
            f"The strongest month was {best.month} ({_fmt_money(best.monthly_total)}) "
            f"and the weakest was {worst.month} ({_fmt_money(worst.monthly_total)})."
        ),
    )


def growth_extremes_insight(growth: GrowthResponse) -> Optional[Insight]:
    """Largest month-over-month increase and decline."""
    measured = [i for i in growth.items if i.growth_pct is not None]
    if not measured:
        return None

    best = max(measured, key=lambda i: i.growth_pct)
    worst = min(measured, key=lambda i: i.growth_pct)
    if best is worst:
        return Insight(
            topic="growth_extremes",
            title=f"Sales moved {best.growth_pct:+.2f}% in {best.month}",
            detail=(
                f"Only one month-over-month comparison is available: {best.month} "
                f"({_fmt_money(best.monthly_total)} versus {_fmt_money(best.previous_total)})."
            ),
        )
    return Insight(
        topic="growth_extremes",
        title=f"Growth swung between {worst.growth_pct:+.2f}% and {best.growth_pct:+.2f}%",
        detail=(
            f"The strongest rise was {best.month} at {best.growth_pct:+.2f}% "
            f"({_fmt_money(best.previous_total)} to {_fmt_money(best.monthly_total)}). "
            f"The sharpest fall was {worst.month} at {worst.growth_pct:+.2f}% "
            f"({_fmt_money(worst.previous_total)} to {_fmt_money(worst.monthly_total)})."
        ),
    )


def spend_concentration_insight(quartiles: SpendingQuartilesResponse) -> Optional[Insight]:
    """Share of revenue held by the top bucket and its spend against the bottom bucket."""
    if not quartiles.summary:
        return None

    grand_total = sum(s.total_spent for s in quartiles.summary)
    if grand_total <= 0:
        return None

    top = quartiles.summary[0]
    bottom = quartiles.summary[-1]
    share = round(top.total_spent / grand_total * 100, 2)
    top_names = [i.customer_name for i in quartiles.items if i.quartile == top.quartile]

    detail = (
        f"Bucket {top.quartile} ({_join_names(top_names)}) accounts for {share:.2f}% "
        f"of all spend with an average of {_fmt_money(top.avg_spent)} per customer."
    )
    if bottom.quartile != top.quartile and bottom.avg_spent > 0:
        ratio = top.avg_spent / bottom.avg_spent
        detail += (
            f" That is {ratio:.2f}x the average of bucket {bottom.quartile} "
            f"({_fmt_money(bottom.avg_spent)})."
        )
    return Insight(
        topic="spend_concentration",
        title=f"The top spending bucket holds {share:.2f}% of revenue",
        detail=detail,
    )


def trend_direction(values: list[float]) -> tuple[str, float]:
    """
    Classify a series as rising, declining or flat.

    Fits a first-degree polynomial (least squares) and compares the slope
    with the mean level of the series.

    Returns:
        Tuple of (direction, slope per period)
    """
    if len(values) < 2:
        return "flat", 0.0

    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)
    slope = float(np.polyfit(x, y, 1)[0])
    level = float(np.abs(y).mean())
    if level == 0 or abs(slope) / level < FLAT_TREND_THRESHOLD:
        return "flat", slope
    return ("rising" if slope > 0 else "declining"), slope


def moving_average_trend_insight(averages: MovingAverageResponse) -> Optional[Insight]:
    """Direction of the smoothed monthly series."""
    if len(averages.items) < 2:
        return None

    series = [i.moving_average for i in averages.items]
    direction, slope = trend_direction(series)
    first, last = averages.items[0], averages.items[-1]
    return Insight(
        topic="moving_average_trend",
        title=f"The {averages.window}-month moving average is {direction}",
        detail=(
            f"The smoothed series went from {_fmt_money(first.moving_average)} in {first.month} "
            f"to {_fmt_money(last.moving_average)} in {last.month}, a fitted change of "
            f"{_fmt_money(slope)} per month."
        ),
    )


def build_insights(
    top_products: TopProductsResponse,
    running_totals: RunningTotalsResponse,
    growth: GrowthResponse,
    quartiles: SpendingQuartilesResponse,
    averages: MovingAverageResponse,
) -> list[Insight]:
    """Derive every applicable insight, skipping those without data."""
    candidates = [
        regional_leaders_insight(top_products),
        revenue_trajectory_insight(running_totals),
        growth_extremes_insight(growth),
        spend_concentration_insight(quartiles),
        moving_average_trend_insight(averages),
    ]
    return [insight for insight in candidates if insight is not None]


@cached("insights")
async def generate_insights(db: AsyncSession) -> InsightsReport:
    """
    Run the five analyses with their default options and write up the findings.

    Returns:
        InsightsReport with the insights and the underlying result sets
    """
    top_products = await top_products_by_region_quarter(db)
    running_totals = await monthly_running_totals(db)
    growth = await month_over_month_growth(db)
    quartiles = await customer_spending_quartiles(db)
    averages = await moving_averages(db)

    insights = build_insights(top_products, running_totals, growth, quartiles, averages)
    logger.info("Generated %d insight(s)", len(insights))
    return InsightsReport(
        generated_at=datetime.now(timezone.utc),
        insights=insights,
        top_products=top_products,
        running_totals=running_totals,
        growth=growth,
        spending_quartiles=quartiles,
        moving_averages=averages,
    )
