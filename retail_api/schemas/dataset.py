"""Dataset loading schemas module."""
from typing import Optional

from pydantic import BaseModel, Field


class DatasetLoadRequest(BaseModel):
    """Schema for loading a CSV snapshot directory."""

    directory: Optional[str] = Field(
        None, description="Directory holding customers/products/transactions CSV files (default: settings.DATASET_DIR)"
    )


class DatasetLoadResponse(BaseModel):
    """Counts of rows written and skipped while loading a snapshot."""

    directory: str
    customers: int = Field(..., description="Customers inserted")
    products: int = Field(..., description="Products inserted")
    transactions: int = Field(..., description="Transactions inserted")
    skipped_rows: int = Field(0, description="Rows rejected by validation")
    message: str
