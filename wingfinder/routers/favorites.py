"""Favorites router — the caller's favorited items. Anonymous callers see none."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wingfinder.database import get_db
from wingfinder.routers.deps import get_current_user_id, to_http_error
from wingfinder.schemas.favorite import FavoritedItem, FavoriteRead, FavoriteToggleResponse
from wingfinder.services import favorites as favorites_service
from wingfinder.services.errors import WingFinderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=list[FavoriteRead])
async def list_favorites(
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[FavoriteRead]:
    rows = await favorites_service.get_favorites(db, user_id)
    return [FavoriteRead.model_validate(r) for r in rows]


@router.get("/items", response_model=list[FavoritedItem])
async def favorited_items(
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[FavoritedItem]:
    """Favorited items with their restaurant name and neighborhood."""
    return await favorites_service.get_favorited_items(db, user_id)


@router.get("/items/{item_id}")
async def is_favorited(
    item_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return {
        "item_id": item_id,
        "favorited": await favorites_service.is_favorited(db, user_id, item_id),
    }


@router.post("/items/{item_id}/toggle", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    item_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> FavoriteToggleResponse:
    """Add the item to the caller's favorites, or remove it if already there."""
    try:
        favorited = await favorites_service.toggle_favorite(db, user_id, item_id)
    except WingFinderError as exc:
        raise to_http_error(exc) from exc
    return FavoriteToggleResponse(item_id=item_id, favorited=favorited)
