"""Customer endpoints module. Customers are reference data: create and read only."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.database.database import get_db
from retail_api.exceptions.api_exception import NotFoundError
from retail_api.models.customer import Customer
from retail_api.schemas.customer import (
    CustomerCreate,
    CustomerResponse,
    CustomerBatchCreate,
    CustomerListResponse,
)
from retail_api.schemas.transaction import BatchResponse
from retail_api.services.records_service import insert_customers

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer: CustomerCreate,
    db: AsyncSession = Depends(get_db),
) -> CustomerResponse:
    """Create a single customer."""
    await insert_customers(db, [customer])
    return CustomerResponse.model_validate(customer.model_dump())


@router.post("/batch", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
async def create_customers_batch(
    batch: CustomerBatchCreate,
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    """Batch create customers."""
    created = await insert_customers(db, batch.customers)
    return BatchResponse(created=created, message=f"Successfully created {created} customer(s)")


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=1000, description="Items per page"),
    region: Optional[str] = Query(None, description="Filter by region"),
    db: AsyncSession = Depends(get_db),
) -> CustomerListResponse:
    """List customers with pagination and optional region filter."""
    query = select(Customer)
    if region:
        query = query.where(Customer.region == region)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    pages = (total + page_size - 1) // page_size if total > 0 else 1

    query = query.order_by(Customer.customer_id).offset((page - 1) * page_size).limit(page_size)
    items = (await db.execute(query)).scalars().all()

    return CustomerListResponse(
        items=[CustomerResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
) -> CustomerResponse:
    """Get a single customer by ID."""
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(detail=f"Customer with id {customer_id} not found")
    return CustomerResponse.model_validate(customer)
