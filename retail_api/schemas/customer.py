"""Customer schemas module."""
from datetime import date

from pydantic import BaseModel, Field, field_validator

from retail_api.models.customer import REGIONS


class CustomerBase(BaseModel):
    """Base customer schema with common fields."""

    customer_id: int = Field(..., ge=1, description="Customer identifier")
    name: str = Field(..., min_length=1, max_length=100, description="Customer name")
    region: str = Field(..., max_length=50, description="City the customer belongs to")
    signup_date: date = Field(..., description="Date the customer signed up")

    @field_validator("region")
    @classmethod
    def region_must_be_known(cls, value: str) -> str:
        if value not in REGIONS:
            raise ValueError(f"region must be one of {', '.join(REGIONS)}")
        return value


class CustomerCreate(CustomerBase):
    """Schema for creating a customer."""

    pass


class CustomerResponse(CustomerBase):
    """Schema for customer response."""

    class Config:
        from_attributes = True


class CustomerBatchCreate(BaseModel):
    """Schema for batch creating customers."""

    customers: list[CustomerCreate] = Field(
        ..., description="List of customers to create"
    )


class CustomerListResponse(BaseModel):
    """Schema for paginated customer list response."""

    items: list[CustomerResponse] = Field(default_factory=list)
    total: int = Field(..., description="Total number of customers")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Number of items per page")
    pages: int = Field(..., description="Total number of pages")
