"""Insights schemas module."""
from datetime import datetime

from pydantic import BaseModel, Field

from retail_api.schemas.analytics import (
    TopProductsResponse,
    RunningTotalsResponse,
    GrowthResponse,
    SpendingQuartilesResponse,
    MovingAverageResponse,
)


class Insight(BaseModel):
    """A single business finding drawn from the analyses."""

    topic: str = Field(..., description="Short machine-friendly topic key")
    title: str = Field(..., description="Headline of the finding")
    detail: str = Field(..., description="Narrative explanation for a business audience")


class InsightsReport(BaseModel):
    """Insights together with the result sets they were derived from."""

    generated_at: datetime
    insights: list[Insight] = Field(default_factory=list)
    top_products: TopProductsResponse
    running_totals: RunningTotalsResponse
    growth: GrowthResponse
    spending_quartiles: SpendingQuartilesResponse
    moving_averages: MovingAverageResponse
