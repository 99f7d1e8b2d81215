"""FastAPI application setup module."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from retail_api.settings import settings
from retail_api.database.database import async_session, create_tables
from retail_api.endpoints.analytics import router as analytics_router
from retail_api.endpoints.customers import router as customers_router
from retail_api.endpoints.dataset import router as dataset_router
from retail_api.endpoints.products import router as products_router
from retail_api.endpoints.transactions import router as transactions_router
from retail_api.services.cache import clear_cache as _clear_cache, get_cache_stats
from retail_api.services.dataset_service import load_dataset

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Optionally create tables and seed the sample snapshot on startup."""
    if settings.CREATE_TABLES_ON_STARTUP or settings.SEED_ON_STARTUP:
        await create_tables()
        logger.info("Database tables ensured")
    if settings.SEED_ON_STARTUP:
        async with async_session() as session:
            await load_dataset(session, settings.DATASET_DIR)
    yield


app = FastAPI(
    title="Retail Window Analytics API",
    description="Window-function retail analytics over customers, products and transactions",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customers_router)
app.include_router(products_router)
app.include_router(transactions_router)
app.include_router(analytics_router)
app.include_router(dataset_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/cache/clear", tags=["admin"])
async def clear_cache():
    """Clear all cached analysis results."""
    count = _clear_cache()
    return {"cleared": count, "message": f"Cleared {count} cached entries"}


@app.get("/cache/stats", tags=["admin"])
async def cache_stats():
    """Get cache statistics for debugging."""
    return get_cache_stats()
