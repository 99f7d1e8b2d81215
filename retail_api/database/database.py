"""Database configuration module."""
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from retail_api.settings import settings

Base = declarative_base()


def enable_sqlite_foreign_keys(sync_engine: Engine) -> None:
    """Turn on FK enforcement for every new SQLite connection (off by default)."""

    @event.listens_for(sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, enabling FK checks on SQLite."""
    new_engine = create_async_engine(url, echo=echo)
    if new_engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(new_engine.sync_engine)
    return new_engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """Dependency for database session."""
    async with async_session() as session:
        yield session


async def create_tables(target: AsyncEngine = engine) -> None:
    """Create all tables known to the metadata (used outside of Alembic)."""
    # Model modules register themselves on Base.metadata when imported
    from retail_api.models import customer, product, transaction  # noqa: F401

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
