"""Record insertion service module.

Shared by the CRUD endpoints and the dataset loader. Customers and products
are reference data and transactions are append-only facts, so inserting is
the only write path. Referential integrity is checked up front to give a
readable error. The database foreign keys stay the final guard.
"""
import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.exceptions.api_exception import BadRequestError, ConflictError
from retail_api.models.customer import Customer
from retail_api.models.product import Product
from retail_api.models.transaction import Transaction
from retail_api.schemas.customer import CustomerCreate
from retail_api.schemas.product import ProductCreate
from retail_api.schemas.transaction import TransactionCreate
from retail_api.services.cache import clear_cache

logger = logging.getLogger(__name__)


async def existing_ids(db: AsyncSession, column, ids: Sequence[int]) -> set[int]:
    """Return the subset of ``ids`` already stored in ``column``."""
    if not ids:
        return set()
    result = await db.execute(select(column).where(column.in_(set(ids))))
    return set(result.scalars().all())


def _check_unique_in_batch(kind: str, ids: Sequence[int]) -> None:
    seen, duplicates = set(), set()
    for record_id in ids:
        if record_id in seen:
            duplicates.add(record_id)
        seen.add(record_id)
    if duplicates:
        raise ConflictError(
            detail=f"Duplicate {kind} id(s) in request: {', '.join(map(str, sorted(duplicates)))}"
        )


async def _commit(db: AsyncSession, kind: str, records: list) -> int:
    db.add_all(records)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(detail=f"Could not store {kind}(s): {exc.orig}") from exc

    clear_cache()
    logger.info("Stored %d %s record(s)", len(records), kind)
    return len(records)


async def _filter_new(
    db: AsyncSession,
    kind: str,
    column,
    payloads: list,
    id_attr: str,
    skip_existing: bool,
) -> list:
    ids = [getattr(p, id_attr) for p in payloads]
    _check_unique_in_batch(kind, ids)
    existing = await existing_ids(db, column, ids)
    if existing and not skip_existing:
        raise ConflictError(
            detail=f"{kind.capitalize()} id(s) already exist: {', '.join(map(str, sorted(existing)))}"
        )
    return [p for p in payloads if getattr(p, id_attr) not in existing]


async def insert_customers(
    db: AsyncSession,
    customers: list[CustomerCreate],
    skip_existing: bool = False,
) -> int:
    """Insert customers. Returns the number of rows written."""
    new = await _filter_new(db, "customer", Customer.customer_id, customers, "customer_id", skip_existing)
    if not new:
        return 0
    return await _commit(db, "customer", [Customer(**c.model_dump()) for c in new])


async def insert_products(
    db: AsyncSession,
    products: list[ProductCreate],
    skip_existing: bool = False,
) -> int:
    """Insert products. Returns the number of rows written."""
    new = await _filter_new(db, "product", Product.product_id, products, "product_id", skip_existing)
    if not new:
        return 0
    return await _commit(db, "product", [Product(**p.model_dump()) for p in new])


async def insert_transactions(
    db: AsyncSession,
    transactions: list[TransactionCreate],
    skip_existing: bool = False,
) -> int:
    """
    Insert transactions after checking that every referenced customer and
    product exists.

    Raises:
        ConflictError: duplicate transaction ids (unless skip_existing)
        BadRequestError: reference to an unknown customer or product
    """
    new = await _filter_new(
        db, "transaction", Transaction.transaction_id, transactions, "transaction_id", skip_existing
    )
    if not new:
        return 0

    customer_ids = {t.customer_id for t in new}
    product_ids = {t.product_id for t in new}
    missing_customers = customer_ids - await existing_ids(db, Customer.customer_id, list(customer_ids))
    missing_products = product_ids - await existing_ids(db, Product.product_id, list(product_ids))

    problems = []
    if missing_customers:
        problems.append(f"unknown customer id(s): {', '.join(map(str, sorted(missing_customers)))}")
    if missing_products:
        problems.append(f"unknown product id(s): {', '.join(map(str, sorted(missing_products)))}")
    if problems:
        raise BadRequestError(detail="Transaction references " + "; ".join(problems))

    return await _commit(db, "transaction", [Transaction(**t.model_dump()) for t in new])
