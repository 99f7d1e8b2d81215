"""Transaction schemas module."""
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class TransactionBase(BaseModel):
    """Base transaction schema with common fields."""

    transaction_id: int = Field(..., ge=1, description="Transaction identifier")
    customer_id: int = Field(..., ge=1, description="Buying customer")
    product_id: int = Field(..., ge=1, description="Product sold")
    sale_date: date = Field(..., description="Date of sale")
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Monetary amount of the sale")
    quantity: int = Field(..., gt=0, description="Units sold")


class TransactionCreate(TransactionBase):
    """Schema for creating a transaction."""

    pass


class TransactionResponse(TransactionBase):
    """Schema for transaction response."""

    class Config:
        from_attributes = True


class TransactionBatchCreate(BaseModel):
    """Schema for batch creating transactions."""

    transactions: list[TransactionCreate] = Field(
        ..., description="List of transactions to create"
    )


class BatchResponse(BaseModel):
    """Schema for batch operation response."""

    created: int = Field(..., description="Number of records created")
    message: str = Field(..., description="Operation result message")


class TransactionListResponse(BaseModel):
    """Schema for paginated transaction list response."""

    items: list[TransactionResponse] = Field(
        default_factory=list, description="List of transactions"
    )
    total: int = Field(..., description="Total number of transactions")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Number of items per page")
    pages: int = Field(..., description="Total number of pages")
