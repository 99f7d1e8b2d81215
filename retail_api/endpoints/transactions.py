"""Transaction endpoints module.

Transactions are append-only facts: there is no update or delete.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.database.database import get_db
from retail_api.exceptions.api_exception import NotFoundError
from retail_api.models.transaction import Transaction
from retail_api.schemas.transaction import (
    TransactionCreate,
    TransactionResponse,
    TransactionBatchCreate,
    BatchResponse,
    TransactionListResponse,
)
from retail_api.services.records_service import insert_transactions

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction: TransactionCreate,
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Record a single sale. Customer and product must already exist."""
    await insert_transactions(db, [transaction])
    return TransactionResponse.model_validate(transaction.model_dump())


@router.post("/batch", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
async def create_transactions_batch(
    batch: TransactionBatchCreate,
    db: AsyncSession = Depends(get_db),
) -> BatchResponse:
    """
    Batch create transactions.

    The whole batch is rejected if any row references an unknown customer
    or product.
    """
    created = await insert_transactions(db, batch.transactions)
    return BatchResponse(created=created, message=f"Successfully created {created} transaction(s)")


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=1000, description="Items per page"),
    customer_id: Optional[int] = Query(None, description="Filter by customer"),
    product_id: Optional[int] = Query(None, description="Filter by product"),
    start_date: Optional[date] = Query(None, description="Earliest sale date (ISO 8601)"),
    end_date: Optional[date] = Query(None, description="Latest sale date (ISO 8601)"),
    db: AsyncSession = Depends(get_db),
) -> TransactionListResponse:
    """List transactions with pagination and optional filters."""
    query = select(Transaction)
    if customer_id is not None:
        query = query.where(Transaction.customer_id == customer_id)
    if product_id is not None:
        query = query.where(Transaction.product_id == product_id)
    if start_date:
        query = query.where(Transaction.sale_date >= start_date)
    if end_date:
        query = query.where(Transaction.sale_date <= end_date)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    pages = (total + page_size - 1) // page_size if total > 0 else 1

    query = (
        query.order_by(Transaction.sale_date, Transaction.transaction_id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = (await db.execute(query)).scalars().all()

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Get a single transaction by ID."""
    transaction = await db.get(Transaction, transaction_id)
    if not transaction:
        raise NotFoundError(detail=f"Transaction with id {transaction_id} not found")
    return TransactionResponse.model_validate(transaction)
