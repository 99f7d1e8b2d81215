"""Analytics schemas module.

Row and response schemas for the five window-function analyses.
"""
from typing import Optional

from pydantic import BaseModel, Field


# --- Top products by region and quarter ---

class TopProductItem(BaseModel):
    """One ranked product inside a (region, year, quarter) partition."""

    region: str = Field(..., description="Customer region")
    year: int = Field(..., description="Calendar year of the sales")
    quarter: int = Field(..., ge=1, le=4, description="Calendar quarter (1-4)")
    product_id: int
    product_name: str
    category: str
    units_sold: int = Field(..., description="Total quantity sold")
    revenue: float = Field(..., description="Total sales amount")
    rank: int = Field(..., description="RANK() within the partition, ties share a rank")


class TopProductsResponse(BaseModel):
    """Response schema for the top products analysis."""

    top_n: int = Field(..., description="Rank cut-off applied to each partition")
    total: int = Field(..., description="Number of returned rows")
    items: list[TopProductItem] = Field(default_factory=list)


# --- Monthly totals, running totals, growth and moving averages ---

class RunningTotalItem(BaseModel):
    """Monthly total with its cumulative running total."""

    month: str = Field(..., description="Month in YYYY-MM format")
    monthly_total: float
    running_total: float


class RunningTotalsResponse(BaseModel):
    """Response schema for the running totals analysis."""

    region: Optional[str] = None
    total: int
    items: list[RunningTotalItem] = Field(default_factory=list)


class GrowthItem(BaseModel):
    """Month-over-month change computed from LAG()."""

    month: str = Field(..., description="Month in YYYY-MM format")
    monthly_total: float
    previous_total: Optional[float] = Field(None, description="Prior month total (null for the first month)")
    growth_pct: Optional[float] = Field(None, description="Percentage change versus the prior month")


class GrowthResponse(BaseModel):
    """Response schema for the month-over-month growth analysis."""

    region: Optional[str] = None
    total: int
    items: list[GrowthItem] = Field(default_factory=list)


class MovingAverageItem(BaseModel):
    """Trailing moving average over monthly totals."""

    month: str = Field(..., description="Month in YYYY-MM format")
    monthly_total: float
    moving_average: float
    months_in_window: int = Field(..., description="Rows actually covered by the frame")


class MovingAverageResponse(BaseModel):
    """Response schema for the moving average analysis."""

    region: Optional[str] = None
    window: int = Field(..., description="Frame size in months (N-1 preceding to current)")
    total: int
    items: list[MovingAverageItem] = Field(default_factory=list)


# --- Customer spending quartiles ---

class SpendingQuartileItem(BaseModel):
    """A customer with its NTILE bucket."""

    customer_id: int
    customer_name: str
    region: str
    total_spent: float
    purchase_count: int
    quartile: int = Field(..., description="Bucket number, 1 holds the top spenders")


class QuartileSummary(BaseModel):
    """Aggregate view of one spending bucket."""

    quartile: int
    customer_count: int
    min_spent: float
    max_spent: float
    avg_spent: float
    total_spent: float


class SpendingQuartilesResponse(BaseModel):
    """Response schema for the spending quartiles analysis."""

    buckets: int = Field(..., description="Number of NTILE buckets")
    total: int = Field(..., description="Number of customers")
    items: list[SpendingQuartileItem] = Field(default_factory=list)
    summary: list[QuartileSummary] = Field(default_factory=list)
