"""Product endpoints module. Products are reference data: create and read only."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.database.database import get_db
from retail_api.exceptions.api_exception import NotFoundError
from retail_api.models.product import Product
from retail_api.schemas.product import (
    ProductCreate,
    ProductResponse,
    ProductBatchCreate,
    ProductListResponse,
)
from retail_api.schemas.transaction import BatchResponse
from retail_api.services.records_service import insert_products

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    """Create a single product."""
    await insert_products(db, [product])
    return ProductResponse.model_validate(product.model_dump())


@router.post("/batch", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
async def create_products_batch(
    batch: ProductBatchCreate,
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    """Batch create products."""
    created = await insert_products(db, batch.products)
    return BatchResponse(created=created, message=f"Successfully created {created} product(s)")


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=1000, description="Items per page"),
    category: Optional[str] = Query(None, description="Filter by category"),
    db: AsyncSession = Depends(get_db),
) -> ProductListResponse:
    """List products with pagination and optional category filter."""
    query = select(Product)
    if category:
        query = query.where(Product.category == category)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    pages = (total + page_size - 1) // page_size if total > 0 else 1

    query = query.order_by(Product.product_id).offset((page - 1) * page_size).limit(page_size)
    items = (await db.execute(query)).scalars().all()

    return ProductListResponse(
        items=[ProductResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    """Get a single product by ID."""
    product = await db.get(Product, product_id)
    if not product:
        raise NotFoundError(detail=f"Product with id {product_id} not found")
    return ProductResponse.model_validate(product)
