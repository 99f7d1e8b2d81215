"""Tests for dataset loading and record insertion."""
import shutil
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from retail_api.exceptions.api_exception import (
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from retail_api.models.transaction import Transaction
from retail_api.schemas.customer import CustomerCreate
from retail_api.schemas.transaction import TransactionCreate
from retail_api.services.dataset_service import load_dataset, read_csv_records
from retail_api.services.records_service import insert_customers, insert_transactions

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _sale(transaction_id=100, customer_id=1, product_id=1, amount="10.00"):
    return TransactionCreate(
        transaction_id=transaction_id,
        customer_id=customer_id,
        product_id=product_id,
        sale_date=date(2024, 7, 1),
        amount=Decimal(amount),
        quantity=1,
    )


class TestReadCsvRecords:
    """Tests for CSV parsing and validation."""

    def test_invalid_rows_are_skipped(self, tmp_path):
        csv_file = tmp_path / "transactions.csv"
        csv_file.write_text(
            "transaction_id,customer_id,product_id,sale_date,amount,quantity\n"
            "1,1,1,2024-01-05,100.00,1\n"
            "2,1,1,2024-01-06,-5.00,1\n"
            "3,1,1,,20.00,1\n"
            "4,1,1,2024-01-07,20.00,0\n",
            encoding="utf-8",
        )
        records, skipped = read_csv_records(csv_file, TransactionCreate)

        assert [r.transaction_id for r in records] == [1]
        assert skipped == 3

    def test_unknown_region_is_skipped(self, tmp_path):
        csv_file = tmp_path / "customers.csv"
        csv_file.write_text(
            "customer_id,name,region,signup_date\n"
            "1,Alice,Kigali,2023-01-01\n"
            "2,Bob,Atlantis,2023-01-01\n",
            encoding="utf-8",
        )
        records, skipped = read_csv_records(csv_file, CustomerCreate)
        assert len(records) == 1
        assert skipped == 1


@pytest.mark.asyncio
class TestLoadDataset:
    """Integration tests for load_dataset."""

    async def test_sample_counts(self, sample_dataset):
        assert sample_dataset.customers == 8
        assert sample_dataset.products == 5
        assert sample_dataset.transactions == 21
        assert sample_dataset.skipped_rows == 0

    async def test_reload_is_harmless(self, db_session, sample_dataset):
        again = await load_dataset(db_session, DATA_DIR)
        assert (again.customers, again.products, again.transactions) == (0, 0, 0)

        count = (await db_session.execute(select(func.count(Transaction.transaction_id)))).scalar()
        assert count == 21

    async def test_invalid_customer_row_keeps_other_sales(self, db_session, tmp_path):
        """Customer 1 has a bad region: only its 3 sales are dropped."""
        for name in ("customers.csv", "products.csv", "transactions.csv"):
            shutil.copy(DATA_DIR / name, tmp_path / name)
        customers_csv = tmp_path / "customers.csv"
        customers_csv.write_text(
            customers_csv.read_text(encoding="utf-8").replace(
                "1,Alice Uwase,Kigali,", "1,Alice Uwase,Kigali City,"
            ),
            encoding="utf-8",
        )

        result = await load_dataset(db_session, tmp_path)

        assert (result.customers, result.products, result.transactions) == (7, 5, 18)
        assert result.skipped_rows == 4
        stored = (await db_session.execute(select(Transaction.customer_id))).scalars().all()
        assert len(stored) == 18
        assert 1 not in stored

    async def test_duplicate_transaction_id_in_file(self, db_session, tmp_path):
        for name in ("customers.csv", "products.csv", "transactions.csv"):
            shutil.copy(DATA_DIR / name, tmp_path / name)
        with open(tmp_path / "transactions.csv", "a", encoding="utf-8") as f:
            f.write("1,2,1,2024-06-30,15000.00,1\n")

        result = await load_dataset(db_session, tmp_path)

        assert result.transactions == 21
        assert result.skipped_rows == 1
        first = await db_session.get(Transaction, 1)
        assert first.customer_id == 1

    async def test_missing_directory(self, db_session, tmp_path):
        with pytest.raises(NotFoundError):
            await load_dataset(db_session, tmp_path / "nowhere")


@pytest.mark.asyncio
class TestInsertRecords:
    """Referential and uniqueness checks on insert."""

    async def test_unknown_customer_rejected(self, db_session, sample_dataset):
        with pytest.raises(BadRequestError) as exc_info:
            await insert_transactions(db_session, [_sale(customer_id=999)])
        assert "999" in exc_info.value.detail

    async def test_unknown_product_rejected(self, db_session, sample_dataset):
        with pytest.raises(BadRequestError):
            await insert_transactions(db_session, [_sale(product_id=999)])

    async def test_duplicate_id_rejected(self, db_session, sample_dataset):
        with pytest.raises(ConflictError):
            await insert_transactions(db_session, [_sale(transaction_id=1)])

    async def test_duplicate_within_batch_rejected(self, db_session, sample_dataset):
        with pytest.raises(ConflictError):
            await insert_transactions(db_session, [_sale(), _sale()])

    async def test_valid_sale_is_appended(self, db_session, sample_dataset):
        created = await insert_transactions(db_session, [_sale()])
        assert created == 1

    async def test_skip_existing_customers(self, db_session, sample_dataset):
        customers = [
            CustomerCreate(customer_id=1, name="Alice Uwase", region="Kigali", signup_date=date(2023, 5, 12)),
            CustomerCreate(customer_id=9, name="New Customer", region="Huye", signup_date=date(2024, 7, 1)),
        ]
        assert await insert_customers(db_session, customers, skip_existing=True) == 1

    async def test_database_enforces_foreign_keys(self, db_session, sample_dataset):
        """Bypassing the service still cannot store a dangling reference."""
        db_session.add(Transaction(
            transaction_id=500, customer_id=999, product_id=1,
            sale_date=date(2024, 7, 1), amount=Decimal("10.00"), quantity=1,
        ))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()
