"""Dataset endpoint module."""
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from retail_api.database.database import get_db
from retail_api.schemas.dataset import DatasetLoadRequest, DatasetLoadResponse
from retail_api.services.dataset_service import load_dataset

router = APIRouter(prefix="/dataset", tags=["dataset"])


@router.post("/load", response_model=DatasetLoadResponse, status_code=status.HTTP_201_CREATED)
async def load_sample_dataset(
    request: Optional[DatasetLoadRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db),
) -> DatasetLoadResponse:
    """
    Load a CSV snapshot from the server's filesystem.

    Rows whose ids already exist are skipped, so loading twice is harmless.
    """
    directory = request.directory if request else None
    return await load_dataset(db, directory)
