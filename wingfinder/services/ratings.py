"""
Ratings service — one 1–5 whole-number score per (user, item).
Re-submitting updates the existing row instead of adding a second one.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wingfinder.models import ItemRating, LocationItem
from wingfinder.schemas.rating import RatingStats
from wingfinder.services.errors import (
    ItemNotFoundError,
    NotAuthenticatedError,
    RatingValidationError,
)

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(value: object) -> int:
    """Return value as int, or raise RatingValidationError unless it is a whole 1–5."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RatingValidationError()
    if isinstance(value, float) and not value.is_integer():
        raise RatingValidationError()
    if not MIN_RATING <= value <= MAX_RATING:
        raise RatingValidationError()
    return int(value)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise NotAuthenticatedError()
    return user_id


async def _get_rating_row(
    db: AsyncSession, user_id: str, item_id: int
) -> Optional[ItemRating]:
    result = await db.execute(
        select(ItemRating).where(
            ItemRating.user_id == user_id, ItemRating.item_id == item_id
        )
    )
    return result.scalars().first()


async def get_user_rating(
    db: AsyncSession, user_id: Optional[str], item_id: int
) -> Optional[int]:
    """The caller's rating for an item; None when anonymous or unrated."""
    if not user_id:
        return None
    row = await _get_rating_row(db, user_id, item_id)
    return row.rating if row else None


async def get_item_rating_stats(
    db: AsyncSession, item_id: int, user_id: Optional[str] = None
) -> RatingStats:
    """Average rounded to one decimal; (0.0, 0) when the item has no ratings."""
    result = await db.execute(
        select(func.avg(ItemRating.rating), func.count(ItemRating.id)).where(
            ItemRating.item_id == item_id
        )
    )
    avg, count = result.one()
    return RatingStats(
        average_rating=round(float(avg), 1) if count else 0.0,
        rating_count=int(count or 0),
        user_rating=await get_user_rating(db, user_id, item_id),
    )


async def get_batch_item_ratings(
    db: AsyncSession, item_ids: list[int], user_id: Optional[str] = None
) -> dict[int, RatingStats]:
    """RatingStats for every requested id in two queries."""
    if not item_ids:
        return {}

    result = await db.execute(
        select(ItemRating.item_id, func.avg(ItemRating.rating), func.count(ItemRating.id))
        .where(ItemRating.item_id.in_(item_ids))
        .group_by(ItemRating.item_id)
    )
    totals = {row[0]: (float(row[1]), int(row[2])) for row in result.all()}

    user_ratings: dict[int, int] = {}
    if user_id:
        result = await db.execute(
            select(ItemRating.item_id, ItemRating.rating).where(
                ItemRating.user_id == user_id, ItemRating.item_id.in_(item_ids)
            )
        )
        user_ratings = {row[0]: row[1] for row in result.all()}

    stats: dict[int, RatingStats] = {}
    for item_id in item_ids:
        avg, count = totals.get(item_id, (0.0, 0))
        stats[item_id] = RatingStats(
            average_rating=round(avg, 1),
            rating_count=count,
            user_rating=user_ratings.get(item_id),
        )
    return stats


async def get_item_ratings(
    db: AsyncSession, item_id: int, limit: Optional[int] = None
) -> list[ItemRating]:
    """All ratings for an item, newest first."""
    query = (
        select(ItemRating)
        .where(ItemRating.item_id == item_id)
        .order_by(ItemRating.created_at.desc(), ItemRating.id.desc())
    )
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_user_ratings(db: AsyncSession, user_id: Optional[str]) -> list[ItemRating]:
    """Every rating the caller has left; empty when anonymous."""
    if not user_id:
        return []
    result = await db.execute(select(ItemRating).where(ItemRating.user_id == user_id))
    return list(result.scalars().all())


async def set_rating(
    db: AsyncSession,
    user_id: Optional[str],
    item_id: int,
    rating: object,
    review: Optional[str] = None,
) -> ItemRating:
    """
    Create or update the caller's rating for an item.
    Raises NotAuthenticatedError, RatingValidationError or ItemNotFoundError.
    """
    user_id = _require_user(user_id)
    value = validate_rating(rating)

    if await db.get(LocationItem, item_id) is None:
        raise ItemNotFoundError(f"Item {item_id} not found")

    existing = await _get_rating_row(db, user_id, item_id)
    try:
        if existing:
            existing.rating = value
            existing.review = review
            row = existing
        else:
            row = ItemRating(user_id=user_id, item_id=item_id, rating=value, review=review)
            db.add(row)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to save rating (user=%s, item=%s): %s", user_id, item_id, exc)
        raise

    await db.refresh(row)
    logger.debug("Rating %s for item %s by %s", "updated" if existing else "created", item_id, user_id)
    return row


async def delete_rating(db: AsyncSession, user_id: Optional[str], item_id: int) -> bool:
    """Delete the caller's rating. Returns False when there was none."""
    user_id = _require_user(user_id)
    existing = await _get_rating_row(db, user_id, item_id)
    if existing is None:
        return False

    try:
        await db.delete(existing)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to delete rating (user=%s, item=%s): %s", user_id, item_id, exc)
        raise
    return True
