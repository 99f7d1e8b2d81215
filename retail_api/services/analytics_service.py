"""Window-function analytics service module.

Runs the five read-only retail analyses over customers, products and
transactions. Partitioning, ordering, frames and ranking ties are left to
the database engine:

- RANK()  OVER (PARTITION BY region, year, quarter ORDER BY revenue DESC)
- SUM()   OVER (ORDER BY year, month ROWS UNBOUNDED PRECEDING)
- LAG()   OVER (ORDER BY year, month)
- NTILE() OVER (ORDER BY total_spent DESC)
- AVG()   OVER (ORDER BY year, month ROWS N-1 PRECEDING)

Python only shapes rows into response schemas and rounds money to cents.
Every query first projects row-level keys (year, month, quarter) in a
subquery so grouping never repeats a parameterised expression.
"""
import logging
from typing import Optional

from sqlalchemy import select, func, case, cast, extract, Integer, Numeric
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.exceptions.api_exception import BadRequestError
from retail_api.models.customer import Customer, REGIONS
from retail_api.models.product import Product
from retail_api.models.transaction import Transaction
from retail_api.schemas.analytics import (
    TopProductItem,
    TopProductsResponse,
    RunningTotalItem,
    RunningTotalsResponse,
    GrowthItem,
    GrowthResponse,
    SpendingQuartileItem,
    QuartileSummary,
    SpendingQuartilesResponse,
    MovingAverageItem,
    MovingAverageResponse,
)
from retail_api.services.cache import cached
from retail_api.settings import settings

logger = logging.getLogger(__name__)

MONEY = Numeric(12, 2)


# =============================================================================
# HELPERS
# =============================================================================

def _money(value) -> float:
    """Round a monetary value (Decimal, float or int) to cents."""
    return round(float(value), 2)


def _month_label(year: int, month: int) -> str:
    return f"{int(year):04d}-{int(month):02d}"


def _growth_pct(current: float, previous: Optional[float]) -> Optional[float]:
    """Percentage change versus the prior month, None when undefined."""
    if previous is None or previous == 0:
        return None
    return round((current - previous) / previous * 100, 2)


def _validate_region(region: Optional[str]) -> None:
    if region is not None and region not in REGIONS:
        raise BadRequestError(
            detail=f"Unknown region '{region}'. Expected one of: {', '.join(REGIONS)}"
        )


def _validate_positive(name: str, value: int) -> None:
    if value < 1:
        raise BadRequestError(detail=f"{name} must be at least 1, got {value}")


def _sale_year():
    return cast(extract("year", Transaction.sale_date), Integer)


def _sale_month():
    return cast(extract("month", Transaction.sale_date), Integer)


def _sale_quarter():
    month = _sale_month()
    return case((month <= 3, 1), (month <= 6, 2), (month <= 9, 3), else_=4)


def _monthly_totals(region: Optional[str] = None):
    """Subquery of (year, month, monthly_total), optionally for one region."""
    rows = select(
        _sale_year().label("year"),
        _sale_month().label("month"),
        Transaction.amount,
    ).select_from(Transaction)
    if region:
        rows = rows.join(Customer, Customer.customer_id == Transaction.customer_id).where(
            Customer.region == region
        )
    rows = rows.subquery("sales_rows")

    return (
        select(
            rows.c.year,
            rows.c.month,
            func.sum(rows.c.amount, type_=MONEY).label("monthly_total"),
        )
        .group_by(rows.c.year, rows.c.month)
        .subquery("monthly_totals")
    )


# =============================================================================
# 1. TOP PRODUCTS BY REGION AND QUARTER
# =============================================================================

@cached("top_products", defaults={"top_n": lambda: settings.TOP_PRODUCTS_LIMIT})
async def top_products_by_region_quarter(
    db: AsyncSession,
    top_n: Optional[int] = None,
    region: Optional[str] = None,
) -> TopProductsResponse:
    """
    Rank products by revenue inside each (region, year, quarter).

    Uses RANK(), so products with equal revenue share a rank and the next
    rank is skipped. Only rows with rank <= top_n are returned.

    Args:
        db: Database session
        top_n: Rank cut-off per partition (default: settings.TOP_PRODUCTS_LIMIT)
        region: Optional region filter

    Returns:
        TopProductsResponse ordered by region, year, quarter, rank, product name
    """
    top_n = settings.TOP_PRODUCTS_LIMIT if top_n is None else top_n
    _validate_positive("top_n", top_n)
    _validate_region(region)

    rows = (
        select(
            Customer.region.label("region"),
            _sale_year().label("year"),
            _sale_quarter().label("quarter"),
            Transaction.product_id,
            Transaction.amount,
            Transaction.quantity,
        )
        .select_from(Transaction)
        .join(Customer, Customer.customer_id == Transaction.customer_id)
    )
    if region:
        rows = rows.where(Customer.region == region)
    rows = rows.subquery("sales_rows")

    regional_sales = (
        select(
            rows.c.region,
            rows.c.year,
            rows.c.quarter,
            Product.product_id,
            Product.name.label("product_name"),
            Product.category,
            func.sum(rows.c.quantity).label("units_sold"),
            # SQLite sums Numeric as float; cents keep RANK() ties exact
            func.round(func.sum(rows.c.amount), 2, type_=MONEY).label("revenue"),
        )
        .select_from(rows)
        .join(Product, Product.product_id == rows.c.product_id)
        .group_by(
            rows.c.region,
            rows.c.year,
            rows.c.quarter,
            Product.product_id,
            Product.name,
            Product.category,
        )
        .subquery("regional_sales")
    )

    ranked = select(
        regional_sales,
        func.rank().over(
            partition_by=(regional_sales.c.region, regional_sales.c.year, regional_sales.c.quarter),
            order_by=regional_sales.c.revenue.desc(),
        ).label("sales_rank"),
    ).subquery("ranked")

    query = (
        select(ranked)
        .where(ranked.c.sales_rank <= top_n)
        .order_by(
            ranked.c.region,
            ranked.c.year,
            ranked.c.quarter,
            ranked.c.sales_rank,
            ranked.c.product_name,
        )
    )
    result = await db.execute(query)

    items = [
        TopProductItem(
            region=row.region,
            year=row.year,
            quarter=row.quarter,
            product_id=row.product_id,
            product_name=row.product_name,
            category=row.category,
            units_sold=int(row.units_sold),
            revenue=_money(row.revenue),
            rank=row.sales_rank,
        )
        for row in result.all()
    ]
    logger.debug("Top products: %d ranked rows (top_n=%d, region=%s)", len(items), top_n, region)
    return TopProductsResponse(top_n=top_n, total=len(items), items=items)


# =============================================================================
# 2. MONTHLY RUNNING TOTALS
# =============================================================================

@cached("running_totals")
async def monthly_running_totals(
    db: AsyncSession,
    region: Optional[str] = None,
) -> RunningTotalsResponse:
    """Monthly sales with a cumulative total (ROWS UNBOUNDED PRECEDING)."""
    _validate_region(region)
    monthly = _monthly_totals(region)

    running_total = func.sum(monthly.c.monthly_total, type_=MONEY).over(
        order_by=(monthly.c.year, monthly.c.month),
        rows=(None, 0),
    )
    query = select(
        monthly.c.year,
        monthly.c.month,
        monthly.c.monthly_total,
        running_total.label("running_total"),
    ).order_by(monthly.c.year, monthly.c.month)
    result = await db.execute(query)

    items = [
        RunningTotalItem(
            month=_month_label(row.year, row.month),
            monthly_total=_money(row.monthly_total),
            running_total=_money(row.running_total),
        )
        for row in result.all()
    ]
    logger.debug("Running totals: %d months (region=%s)", len(items), region)
    return RunningTotalsResponse(region=region, total=len(items), items=items)


# =============================================================================
# 3. MONTH-OVER-MONTH GROWTH
# =============================================================================

@cached("growth")
async def month_over_month_growth(
    db: AsyncSession,
    region: Optional[str] = None,
) -> GrowthResponse:
    """
    Month-over-month growth from LAG() over monthly totals.

    growth_pct = (current - previous) / previous * 100, rounded to 2 places.
    The first month (no previous row) and a zero previous month yield None.
    """
    _validate_region(region)
    monthly = _monthly_totals(region)

    previous_total = func.lag(monthly.c.monthly_total, type_=MONEY).over(
        order_by=(monthly.c.year, monthly.c.month),
    )
    query = select(
        monthly.c.year,
        monthly.c.month,
        monthly.c.monthly_total,
        previous_total.label("previous_total"),
    ).order_by(monthly.c.year, monthly.c.month)
    result = await db.execute(query)

    items = []
    for row in result.all():
        current = _money(row.monthly_total)
        previous = _money(row.previous_total) if row.previous_total is not None else None
        items.append(GrowthItem(
            month=_month_label(row.year, row.month),
            monthly_total=current,
            previous_total=previous,
            growth_pct=_growth_pct(current, previous),
        ))
    logger.debug("Growth: %d months (region=%s)", len(items), region)
    return GrowthResponse(region=region, total=len(items), items=items)


# =============================================================================
# 4. CUSTOMER SPENDING QUARTILES
# =============================================================================

@cached("spending_quartiles", defaults={"buckets": lambda: settings.SPENDING_BUCKETS})
async def customer_spending_quartiles(
    db: AsyncSession,
    buckets: Optional[int] = None,
) -> SpendingQuartilesResponse:
    """
    Bucket customers by total spend with NTILE().

    Customers are ordered by total_spent descending (customer_id breaks
    ties), so bucket 1 holds the top spenders. Customers without any
    transaction are not bucketed.
    """
    buckets = settings.SPENDING_BUCKETS if buckets is None else buckets
    _validate_positive("buckets", buckets)

    customer_spend = (
        select(
            Customer.customer_id,
            Customer.name.label("customer_name"),
            Customer.region,
            func.sum(Transaction.amount, type_=MONEY).label("total_spent"),
            func.count(Transaction.transaction_id).label("purchase_count"),
        )
        .select_from(Customer)
        .join(Transaction, Transaction.customer_id == Customer.customer_id)
        .group_by(Customer.customer_id, Customer.name, Customer.region)
        .subquery("customer_spend")
    )
    bucketed = select(
        customer_spend,
        func.ntile(buckets, type_=Integer).over(
            order_by=(customer_spend.c.total_spent.desc(), customer_spend.c.customer_id),
        ).label("quartile"),
    ).subquery("bucketed")

    rows = (await db.execute(
        select(bucketed).order_by(
            bucketed.c.quartile,
            bucketed.c.total_spent.desc(),
            bucketed.c.customer_id,
        )
    )).all()

    summary_rows = (await db.execute(
        select(
            bucketed.c.quartile,
            func.count().label("customer_count"),
            func.min(bucketed.c.total_spent).label("min_spent"),
            func.max(bucketed.c.total_spent).label("max_spent"),
            func.avg(bucketed.c.total_spent).label("avg_spent"),
            func.sum(bucketed.c.total_spent).label("total_spent"),
        )
        .group_by(bucketed.c.quartile)
        .order_by(bucketed.c.quartile)
    )).all()

    items = [
        SpendingQuartileItem(
            customer_id=row.customer_id,
            customer_name=row.customer_name,
            region=row.region,
            total_spent=_money(row.total_spent),
            purchase_count=row.purchase_count,
            quartile=row.quartile,
        )
        for row in rows
    ]
    summary = [
        QuartileSummary(
            quartile=row.quartile,
            customer_count=row.customer_count,
            min_spent=_money(row.min_spent),
            max_spent=_money(row.max_spent),
            avg_spent=_money(row.avg_spent),
            total_spent=_money(row.total_spent),
        )
        for row in summary_rows
    ]
    logger.debug("Spending quartiles: %d customers in %d buckets", len(items), buckets)
    return SpendingQuartilesResponse(buckets=buckets, total=len(items), items=items, summary=summary)


# =============================================================================
# 5. MOVING AVERAGES
# =============================================================================

@cached("moving_averages", defaults={"window": lambda: settings.MOVING_AVERAGE_WINDOW})
async def moving_averages(
    db: AsyncSession,
    window: Optional[int] = None,
    region: Optional[str] = None,
) -> MovingAverageResponse:
    """
    Trailing moving average of monthly totals.

    Frame: ROWS BETWEEN (window - 1) PRECEDING AND CURRENT ROW. The first
    months average over however many rows the frame covers.
    """
    window = settings.MOVING_AVERAGE_WINDOW if window is None else window
    _validate_positive("window", window)
    _validate_region(region)
    monthly = _monthly_totals(region)

    ordering = (monthly.c.year, monthly.c.month)
    frame = (-(window - 1), 0)
    query = select(
        monthly.c.year,
        monthly.c.month,
        monthly.c.monthly_total,
        func.avg(monthly.c.monthly_total).over(order_by=ordering, rows=frame).label("moving_average"),
        func.count().over(order_by=ordering, rows=frame).label("months_in_window"),
    ).order_by(*ordering)
    result = await db.execute(query)

    items = [
        MovingAverageItem(
            month=_month_label(row.year, row.month),
            monthly_total=_money(row.monthly_total),
            moving_average=_money(row.moving_average),
            months_in_window=row.months_in_window,
        )
        for row in result.all()
    ]
    logger.debug("Moving averages: %d months (window=%d, region=%s)", len(items), window, region)
    return MovingAverageResponse(region=region, window=window, total=len(items), items=items)
