"""Product schemas module."""
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductBase(BaseModel):
    """Base product schema with common fields."""

    product_id: int = Field(..., ge=1, description="Product identifier")
    name: str = Field(..., min_length=1, max_length=100, description="Product name")
    category: str = Field(..., min_length=1, max_length=50, description="Product category")
    unit_price: Decimal = Field(..., gt=0, decimal_places=2, description="Price per unit")


class ProductCreate(ProductBase):
    """Schema for creating a product."""

    pass


class ProductResponse(ProductBase):
    """Schema for product response."""

    class Config:
        from_attributes = True


class ProductBatchCreate(BaseModel):
    """Schema for batch creating products."""

    products: list[ProductCreate] = Field(..., description="List of products to create")


class ProductListResponse(BaseModel):
    """Schema for paginated product list response."""

    items: list[ProductResponse] = Field(default_factory=list)
    total: int = Field(..., description="Total number of products")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Number of items per page")
    pages: int = Field(..., description="Total number of pages")
