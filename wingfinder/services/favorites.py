"""Favorites service — (user, item) markers that are toggled on and off."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wingfinder.models import Favorite, Location, LocationItem
from wingfinder.schemas.favorite import FavoritedItem
from wingfinder.services.errors import ItemNotFoundError, NotAuthenticatedError

logger = logging.getLogger(__name__)


async def get_favorites(db: AsyncSession, user_id: Optional[str]) -> list[Favorite]:
    """The caller's favorites; anonymous callers get an empty list."""
    if not user_id:
        return []
    result = await db.execute(
        select(Favorite)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
    )
    return list(result.scalars().all())


async def get_favorite_item_ids(db: AsyncSession, user_id: Optional[str]) -> set[str]:
    """Favorited item ids as strings, matching ItemResult.id."""
    return {str(f.item_id) for f in await get_favorites(db, user_id)}


async def _get_favorite_row(
    db: AsyncSession, user_id: str, item_id: int
) -> Optional[Favorite]:
    result = await db.execute(
        select(Favorite).where(Favorite.user_id == user_id, Favorite.item_id == item_id)
    )
    return result.scalars().first()


async def is_favorited(db: AsyncSession, user_id: Optional[str], item_id: int) -> bool:
    if not user_id:
        return False
    return await _get_favorite_row(db, user_id, item_id) is not None


async def get_batch_favorites(
    db: AsyncSession, user_id: Optional[str], item_ids: list[int]
) -> dict[int, bool]:
    """item_id → favorited, for every requested id."""
    favorite_ids = {f.item_id for f in await get_favorites(db, user_id)}
    return {item_id: item_id in favorite_ids for item_id in item_ids}


async def toggle_favorite(db: AsyncSession, user_id: Optional[str], item_id: int) -> bool:
    """
    Insert the favorite if absent, delete it if present.
    Returns the new state (True = favorited).
    """
    if not user_id:
        raise NotAuthenticatedError()
    if await db.get(LocationItem, item_id) is None:
        raise ItemNotFoundError(f"Item {item_id} not found")

    existing = await _get_favorite_row(db, user_id, item_id)
    try:
        if existing:
            await db.delete(existing)
        else:
            db.add(Favorite(user_id=user_id, item_id=item_id))
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to toggle favorite (user=%s, item=%s): %s", user_id, item_id, exc)
        raise

    return existing is None


async def get_favorited_items(
    db: AsyncSession, user_id: Optional[str]
) -> list[FavoritedItem]:
    """Favorited items joined with their location; dangling rows are skipped."""
    if not user_id:
        return []
    result = await db.execute(
        select(Favorite, LocationItem, Location)
        .join(LocationItem, LocationItem.id == Favorite.item_id)
        .join(Location, Location.id == LocationItem.location_id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
    )
    return [
        FavoritedItem(
            item_id=item.id,
            item_name=item.item_name,
            location_id=location.id,
            restaurant_name=location.restaurant_name,
            neighborhood=location.neighborhood,
            favorited_at=favorite.created_at,
        )
        for favorite, item, location in result.all()
    ]
