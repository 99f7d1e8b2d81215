"""Pytest fixtures for async SQLite test database."""
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retail_api.database.database import Base, build_engine, get_db
from retail_api.models.customer import Customer
from retail_api.models.product import Product
from retail_api.models.transaction import Transaction
from retail_api.services.cache import clear_cache
from retail_api.services.dataset_service import load_dataset

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture(autouse=True)
def fresh_cache():
    """Analysis results are cached per process, so isolate every test."""
    clear_cache()
    yield
    clear_cache()


@pytest_asyncio.fixture
async def db_session():
    """Create an in-memory SQLite async session with FK enforcement."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def sample_dataset(db_session):
    """Load the bundled Jan-Jun 2024 snapshot (8 customers, 5 products, 21 sales)."""
    return await load_dataset(db_session, DATA_DIR)


@pytest_asyncio.fixture
async def tied_sales(db_session):
    """Two products with equal Q1 revenue in Kigali and a third trailing behind."""
    db_session.add_all([
        Customer(customer_id=1, name="Alice", region="Kigali", signup_date=date(2023, 1, 1)),
        Product(product_id=1, name="Alpha", category="A", unit_price=Decimal("10.00")),
        Product(product_id=2, name="Beta", category="A", unit_price=Decimal("10.00")),
        Product(product_id=3, name="Gamma", category="B", unit_price=Decimal("5.00")),
    ])
    await db_session.flush()
    db_session.add_all([
        Transaction(transaction_id=1, customer_id=1, product_id=1, sale_date=date(2024, 1, 3),
                    amount=Decimal("100.00"), quantity=10),
        Transaction(transaction_id=2, customer_id=1, product_id=2, sale_date=date(2024, 2, 3),
                    amount=Decimal("100.00"), quantity=10),
        Transaction(transaction_id=3, customer_id=1, product_id=3, sale_date=date(2024, 3, 3),
                    amount=Decimal("50.00"), quantity=10),
    ])
    await db_session.commit()


@pytest_asyncio.fixture
async def client(db_session):
    """HTTP client bound to the app with the test session injected."""
    from retail_api.app import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
