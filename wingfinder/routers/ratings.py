"""
Ratings router.

Endpoints:
  GET    /ratings/items/{item_id}         — ratings for an item, newest first
  GET    /ratings/items/{item_id}/stats   — average (1 decimal) and count
  GET    /ratings/items/{item_id}/me      — caller's own rating or null
  PUT    /ratings/items/{item_id}         — create or update caller's rating
  DELETE /ratings/items/{item_id}         — remove caller's rating
  GET    /ratings/me                      — every rating by the caller
  POST   /ratings/batch                   — stats for many items at once
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wingfinder.database import get_db
from wingfinder.routers.deps import get_current_user_id, to_http_error
from wingfinder.schemas.rating import (
    BatchRatingsRequest,
    MutationResult,
    RatingCreate,
    RatingRead,
    RatingStats,
)
from wingfinder.services import ratings as ratings_service
from wingfinder.services.errors import WingFinderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.get("/items/{item_id}", response_model=list[RatingRead])
async def item_ratings(
    item_id: int,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> list[RatingRead]:
    rows = await ratings_service.get_item_ratings(db, item_id, limit=limit)
    return [RatingRead.model_validate(r) for r in rows]


@router.get("/items/{item_id}/stats", response_model=RatingStats)
async def item_rating_stats(
    item_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> RatingStats:
    return await ratings_service.get_item_rating_stats(db, item_id, user_id=user_id)


@router.get("/items/{item_id}/me")
async def my_rating(
    item_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """{"rating": int | null} — null for anonymous callers."""
    return {"rating": await ratings_service.get_user_rating(db, user_id, item_id)}


@router.put("/items/{item_id}", response_model=RatingRead)
async def set_rating(
    item_id: int,
    body: RatingCreate,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> RatingRead:
    """
    Set the caller's rating for an item. Requires X-User-ID.
    The rating must be a whole number from 1 to 5; a second call updates it.
    """
    try:
        row = await ratings_service.set_rating(
            db, user_id, item_id, body.rating, review=body.review
        )
    except WingFinderError as exc:
        raise to_http_error(exc) from exc
    return RatingRead.model_validate(row)


@router.delete("/items/{item_id}", response_model=MutationResult)
async def delete_rating(
    item_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MutationResult:
    try:
        deleted = await ratings_service.delete_rating(db, user_id, item_id)
    except WingFinderError as exc:
        raise to_http_error(exc) from exc
    if not deleted:
        return MutationResult(success=False, message="No rating found")
    return MutationResult(success=True)


@router.get("/me", response_model=list[RatingRead])
async def my_ratings(
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[RatingRead]:
    rows = await ratings_service.get_user_ratings(db, user_id)
    return [RatingRead.model_validate(r) for r in rows]


@router.post("/batch", response_model=dict[int, RatingStats])
async def batch_rating_stats(
    body: BatchRatingsRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict[int, RatingStats]:
    return await ratings_service.get_batch_item_ratings(db, body.item_ids, user_id=user_id)
