"""
Admin endpoints — all protected by X-Service-Token header.
Used by the ingestion and image-scraping jobs.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from wingfinder.database import get_db
from wingfinder.routers.deps import to_http_error, verify_service_token
from wingfinder.schemas.admin import (
    ClearDataResult,
    ImageUpdate,
    ItemKeyBackfillResult,
    MigrationRequest,
    MigrationResult,
)
from wingfinder.services import ingestion
from wingfinder.services.errors import WingFinderError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(verify_service_token)],
)


@router.post("/migrate", response_model=MigrationResult, status_code=status.HTTP_201_CREATED)
async def migrate(
    body: MigrationRequest,
    db: AsyncSession = Depends(get_db),
) -> MigrationResult:
    """
    Ingest a batch of flat item records.
    Idempotent per item key: re-sending a batch creates nothing new.
    """
    try:
        return await ingestion.migrate_items(db, body.items)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Migration failed",
        ) from exc


@router.delete("/data", response_model=ClearDataResult)
async def clear_data(db: AsyncSession = Depends(get_db)) -> ClearDataResult:
    """Delete every location, item, hours row, rating and favorite."""
    return await ingestion.clear_all_data(db)


@router.patch("/items/{item_id}/image")
async def update_item_image(
    item_id: int,
    body: ImageUpdate,
    db: AsyncSession = Depends(get_db),
) -> dict:
    try:
        await ingestion.update_item_image(db, item_id, body.image_url, body.image_path)
    except WingFinderError as exc:
        raise to_http_error(exc) from exc
    return {"success": True}


@router.post("/item-keys", response_model=ItemKeyBackfillResult)
async def backfill_item_keys(db: AsyncSession = Depends(get_db)) -> ItemKeyBackfillResult:
    """Compute item keys for stored items that are missing one."""
    return await ingestion.backfill_item_keys(db)
