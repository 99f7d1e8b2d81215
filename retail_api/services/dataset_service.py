"""Dataset loading service module.

Loads a CSV snapshot (customers.csv, products.csv, transactions.csv) into
the database. Reference tables are written before facts so foreign keys
hold. Rows already present are skipped, which makes a reload harmless.
Invalid rows, repeated ids and sales pointing at a customer or product that
was not stored are skipped and counted instead of failing the load.
"""
import csv
import logging
from pathlib import Path
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.exceptions.api_exception import NotFoundError
from retail_api.models.customer import Customer
from retail_api.models.product import Product
from retail_api.schemas.customer import CustomerCreate
from retail_api.schemas.dataset import DatasetLoadResponse
from retail_api.schemas.product import ProductCreate
from retail_api.schemas.transaction import TransactionCreate
from retail_api.services.records_service import (
    existing_ids,
    insert_customers,
    insert_products,
    insert_transactions,
)
from retail_api.settings import settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

CUSTOMERS_FILE = "customers.csv"
PRODUCTS_FILE = "products.csv"
TRANSACTIONS_FILE = "transactions.csv"


def read_csv_records(file_path: Path, schema: Type[M]) -> tuple[list[M], int]:
    """
    Parse a CSV file into validated schema instances.

    Args:
        file_path: CSV file with a header row
        schema: Pydantic model each row is validated against

    Returns:
        Tuple of (valid records, number of skipped rows)
    """
    records: list[M] = []
    skipped = 0
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            cleaned = {k.strip(): (v.strip() if isinstance(v, str) else v) for k, v in row.items() if k}
            try:
                records.append(schema.model_validate(cleaned))
            except ValidationError as e:
                skipped += 1
                logger.warning(
                    "Skipping %s line %d: %s", file_path.name, line_no, e.errors()[0]["msg"]
                )
    return records, skipped


def drop_duplicate_ids(records: list[M], id_attr: str, file_name: str) -> tuple[list[M], int]:
    """Keep the first row for each id; later rows with the same id are skipped."""
    seen: set[int] = set()
    kept: list[M] = []
    for record in records:
        record_id = getattr(record, id_attr)
        if record_id in seen:
            logger.warning("Skipping %s row with duplicate %s %d", file_name, id_attr, record_id)
            continue
        seen.add(record_id)
        kept.append(record)
    return kept, len(records) - len(kept)


async def drop_orphaned_transactions(
    db: AsyncSession,
    transactions: list[TransactionCreate],
) -> tuple[list[TransactionCreate], int]:
    """
    Drop transactions whose customer or product is not stored.

    A customer or product row skipped as invalid takes its sales with it
    instead of failing the whole transaction file.
    """
    customers = await existing_ids(db, Customer.customer_id, list({t.customer_id for t in transactions}))
    products = await existing_ids(db, Product.product_id, list({t.product_id for t in transactions}))

    kept = []
    for t in transactions:
        if t.customer_id in customers and t.product_id in products:
            kept.append(t)
        else:
            logger.warning(
                "Skipping transaction %d: unknown customer %d or product %d",
                t.transaction_id, t.customer_id, t.product_id,
            )
    return kept, len(transactions) - len(kept)


async def load_dataset(
    db: AsyncSession,
    directory: Optional[str | Path] = None,
) -> DatasetLoadResponse:
    """
    Load the CSV snapshot found in ``directory``.

    Raises:
        NotFoundError: if the directory or one of the three files is missing
    """
    base = Path(directory or settings.DATASET_DIR)
    files = [base / CUSTOMERS_FILE, base / PRODUCTS_FILE, base / TRANSACTIONS_FILE]
    missing = [f.name for f in files if not f.is_file()]
    if missing:
        raise NotFoundError(detail=f"Dataset file(s) not found in {base}: {', '.join(missing)}")

    skipped = 0
    parsed = {}
    for path, schema, id_attr in (
        (files[0], CustomerCreate, "customer_id"),
        (files[1], ProductCreate, "product_id"),
        (files[2], TransactionCreate, "transaction_id"),
    ):
        records, invalid = read_csv_records(path, schema)
        records, duplicates = drop_duplicate_ids(records, id_attr, path.name)
        parsed[path.name] = records
        skipped += invalid + duplicates

    inserted_customers = await insert_customers(db, parsed[CUSTOMERS_FILE], skip_existing=True)
    inserted_products = await insert_products(db, parsed[PRODUCTS_FILE], skip_existing=True)
    transactions, orphaned = await drop_orphaned_transactions(db, parsed[TRANSACTIONS_FILE])
    inserted_transactions = await insert_transactions(db, transactions, skip_existing=True)
    skipped += orphaned

    logger.info(
        "Loaded dataset from %s: %d customers, %d products, %d transactions (%d rows skipped)",
        base, inserted_customers, inserted_products, inserted_transactions, skipped,
    )
    return DatasetLoadResponse(
        directory=str(base),
        customers=inserted_customers,
        products=inserted_products,
        transactions=inserted_transactions,
        skipped_rows=skipped,
        message=(
            f"Inserted {inserted_customers} customer(s), {inserted_products} product(s) "
            f"and {inserted_transactions} transaction(s)"
        ),
    )
