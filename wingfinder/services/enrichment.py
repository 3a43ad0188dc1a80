"""
Enrichment lookup — rating and favorite facts for items, keyed by item_key.
Feeds location_aggregator.enrich_items().
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wingfinder.models import Favorite, ItemRating, LocationItem
from wingfinder.schemas.location import ItemEnrichment

logger = logging.getLogger(__name__)


async def get_item_enrichment(
    db: AsyncSession,
    item_keys: Iterable[str],
    user_id: Optional[str] = None,
) -> dict[str, ItemEnrichment]:
    """
    Build {item_key: ItemEnrichment} for stored items whose key is requested.

    Keys with no stored item are absent from the result. average_rating is
    None for items nobody has rated. user_rating and is_favorited are only
    filled for an identified caller.
    """
    keys = sorted({k for k in item_keys if k})
    if not keys:
        return {}

    result = await db.execute(
        select(LocationItem.id, LocationItem.item_key).where(LocationItem.item_key.in_(keys))
    )
    id_by_key = {key: item_id for item_id, key in result.all()}
    if not id_by_key:
        return {}
    item_ids = list(id_by_key.values())

    result = await db.execute(
        select(ItemRating.item_id, func.avg(ItemRating.rating), func.count(ItemRating.id))
        .where(ItemRating.item_id.in_(item_ids))
        .group_by(ItemRating.item_id)
    )
    totals = {row[0]: (float(row[1]), int(row[2])) for row in result.all()}

    user_ratings: dict[int, int] = {}
    favorite_ids: set[int] = set()
    if user_id:
        result = await db.execute(
            select(ItemRating.item_id, ItemRating.rating).where(
                ItemRating.user_id == user_id, ItemRating.item_id.in_(item_ids)
            )
        )
        user_ratings = {row[0]: row[1] for row in result.all()}

        result = await db.execute(
            select(Favorite.item_id).where(
                Favorite.user_id == user_id, Favorite.item_id.in_(item_ids)
            )
        )
        favorite_ids = set(result.scalars().all())

    enrichment: dict[str, ItemEnrichment] = {}
    for key, item_id in id_by_key.items():
        avg, count = totals.get(item_id, (None, 0))
        enrichment[key] = ItemEnrichment(
            item_id=str(item_id),
            average_rating=avg,
            rating_count=count,
            user_rating=user_ratings.get(item_id),
            is_favorited=item_id in favorite_ids,
        )

    logger.debug("Enrichment: %d/%d keys matched stored items", len(enrichment), len(keys))
    return enrichment
