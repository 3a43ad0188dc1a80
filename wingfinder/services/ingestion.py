"""
Ingestion service — batch writes of flat item records, bulk wipe, and
back-filling of enrichment fields (image paths, item keys).

Item types are decoded once here; stored rows always hold a sorted type list.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wingfinder.models import Favorite, ItemRating, Location, LocationHour, LocationItem
from wingfinder.schemas.admin import ClearDataResult, ItemKeyBackfillResult, MigrationResult
from wingfinder.schemas.location import ItemRecord
from wingfinder.services.errors import ItemNotFoundError
from wingfinder.services.location_aggregator import parse_wing_types, record_item_key
from wingfinder.utils.keys import generate_item_key

logger = logging.getLogger(__name__)


def _new_location(record: ItemRecord) -> Location:
    return Location(
        restaurant_name=record.restaurant_name.strip(),
        address=record.address,
        neighborhood=record.neighborhood,
        latitude=record.latitude,
        longitude=record.longitude,
        geocoded_address=record.geocoded_address,
        geocoding_method=record.geocoding_method,
        allow_minors=record.allow_minors,
        allow_takeout=record.allow_takeout,
        allow_delivery=record.allow_delivery,
        purchase_limits=record.purchase_limits,
        phone=record.phone,
        website=record.website,
    )


async def migrate_items(db: AsyncSession, records: Iterable[ItemRecord]) -> MigrationResult:
    """
    Write a batch of item records.

    One location per restaurant name (existing rows are reused), hours taken
    from the first record of a new location with at most one row per date,
    and items whose item_key is already stored are skipped.
    """
    records = list(records)
    result = MigrationResult(processed=len(records))

    existing = await db.execute(select(Location))
    locations: dict[str, Location] = {
        loc.restaurant_name: loc for loc in existing.scalars().all()
    }
    keys = await db.execute(select(LocationItem.item_key).where(LocationItem.item_key.is_not(None)))
    known_keys: set[str] = set(keys.scalars().all())

    try:
        for record in records:
            name = record.restaurant_name.strip()
            if not name:
                logger.warning("Skipping item %r without a restaurant name", record.item_name)
                continue

            location = locations.get(name)
            if location is None:
                location = _new_location(record)
                db.add(location)
                await db.flush()
                locations[name] = location
                result.locations_created += 1

                seen_dates: set[str] = set()
                for entry in record.hours:
                    if entry.full_date in seen_dates:
                        continue
                    seen_dates.add(entry.full_date)
                    db.add(
                        LocationHour(
                            location_id=location.id,
                            day_of_week=entry.day_of_week,
                            date=entry.date,
                            full_date=entry.full_date,
                            hours=entry.hours,
                        )
                    )
                    result.hours_created += 1

            item_key = record_item_key(record)
            if item_key in known_keys:
                continue
            known_keys.add(item_key)

            db.add(
                LocationItem(
                    location_id=location.id,
                    item_name=record.item_name,
                    description=record.description,
                    alt_description=record.alt_description,
                    types=parse_wing_types(record.type),
                    gluten_free=record.gluten_free,
                    price=record.price,
                    url=record.url,
                    image=record.image,
                    image_url=record.image_url,
                    item_key=item_key,
                )
            )
            result.items_created += 1

        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Migration batch failed after %d items: %s", result.items_created, exc)
        raise

    logger.info(
        "Migrated %d records: %d locations, %d items, %d hours",
        result.processed, result.locations_created, result.items_created, result.hours_created,
    )
    return result


async def clear_all_data(db: AsyncSession) -> ClearDataResult:
    """
    Delete every rating, favorite, item, hours row and location.
    Ratings and favorites are removed explicitly since SQLite does not
    enforce ON DELETE CASCADE.
    """
    counts = ClearDataResult()
    counts.ratings = int((await db.execute(select(func.count(ItemRating.id)))).scalar_one())
    counts.favorites = int((await db.execute(select(func.count(Favorite.id)))).scalar_one())
    counts.items = int((await db.execute(select(func.count(LocationItem.id)))).scalar_one())
    counts.hours = int((await db.execute(select(func.count(LocationHour.id)))).scalar_one())
    counts.locations = int((await db.execute(select(func.count(Location.id)))).scalar_one())

    try:
        await db.execute(delete(ItemRating))
        await db.execute(delete(Favorite))
        await db.execute(delete(LocationItem))
        await db.execute(delete(LocationHour))
        await db.execute(delete(Location))
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to clear data: %s", exc)
        raise

    logger.warning(
        "Cleared all data: %d ratings, %d favorites, %d items, %d hours, %d locations",
        counts.ratings, counts.favorites, counts.items, counts.hours, counts.locations,
    )
    return counts


async def update_item_image(
    db: AsyncSession, item_id: int, image_url: str, image_path: str
) -> LocationItem:
    """Back-fill the scraped image URL and local image path for an item."""
    item = await db.get(LocationItem, item_id)
    if item is None:
        raise ItemNotFoundError(f"Item {item_id} not found")

    item.image = image_path
    item.image_url = image_url
    try:
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to update image for item %s: %s", item_id, exc)
        raise
    return item


async def backfill_item_keys(db: AsyncSession) -> ItemKeyBackfillResult:
    """Compute item_key for stored items that lack one; report duplicate keys."""
    result = await db.execute(
        select(LocationItem).options(selectinload(LocationItem.location))
    )
    items = list(result.scalars().all())

    updated = 0
    for item in items:
        if item.item_key:
            continue
        item.item_key = generate_item_key(
            item.location.restaurant_name, item.item_name, item.location.address
        )
        updated += 1

    counts = Counter(item.item_key for item in items)
    duplicates = sorted(key for key, n in counts.items() if n > 1)
    if duplicates:
        logger.warning("Found %d duplicate item keys", len(duplicates))

    try:
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error("Failed to back-fill item keys: %s", exc)
        raise
    return ItemKeyBackfillResult(updated=updated, duplicates=duplicates)
