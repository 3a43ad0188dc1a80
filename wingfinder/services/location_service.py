"""
Location service — the read path shared by every location endpoint.

Pipeline:
  1. Read live rows (locations + items + hours) and convert to ItemRecords
  2. Merge with the static snapshot, reconciled by item_key
  3. Group by restaurant name (location_aggregator)
  4. Enrich with ratings/favorites for the caller, refresh stats
  5. Filter → sort → paginate → annotate open-now
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wingfinder.models import Location, LocationItem
from wingfinder.schemas.filters import LocationFilters, SortBy
from wingfinder.schemas.location import (
    HourEntry,
    ItemRecord,
    LocationListResponse,
    LocationPin,
    LocationResult,
)
from wingfinder.services.enrichment import get_item_enrichment
from wingfinder.services.errors import ItemNotFoundError
from wingfinder.services.favorites import get_favorite_item_ids
from wingfinder.services.location_aggregator import (
    annotate_open_now,
    enrich_items,
    filter_locations,
    group_items_by_location,
    list_neighborhoods,
    locations_to_pins,
    merge_item_sources,
    paginate,
    sort_locations,
)
from wingfinder.services.snapshot import load_snapshot

logger = logging.getLogger(__name__)


# ── Live rows → records ────────────────────────────────────────────────────────


def _hour_entries(location: Location) -> list[HourEntry]:
    return [
        HourEntry(
            day_of_week=h.day_of_week,
            date=h.date,
            full_date=h.full_date,
            hours=h.hours,
        )
        for h in sorted(location.hours, key=lambda h: h.full_date)
    ]


def location_to_records(location: Location) -> list[ItemRecord]:
    """Flatten one stored location (items and hours loaded) into item records."""
    hours = _hour_entries(location)
    return [
        ItemRecord(
            restaurant_name=location.restaurant_name,
            neighborhood=location.neighborhood,
            address=location.address,
            item_name=item.item_name,
            description=item.description,
            alt_description=item.alt_description,
            type=list(item.types or []),
            gluten_free=item.gluten_free,
            price=item.price,
            url=item.url,
            image=item.image,
            image_url=item.image_url,
            allow_minors=location.allow_minors,
            allow_takeout=location.allow_takeout,
            allow_delivery=location.allow_delivery,
            purchase_limits=location.purchase_limits,
            latitude=location.latitude,
            longitude=location.longitude,
            geocoded_address=location.geocoded_address,
            geocoding_method=location.geocoding_method,
            phone=location.phone,
            website=location.website,
            hours=hours,
            item_key=item.item_key,
            item_id=str(item.id),
            location_id=str(location.id),
        )
        for item in sorted(location.items, key=lambda i: i.id)
    ]


async def fetch_live_records(db: AsyncSession) -> list[ItemRecord]:
    """Every stored item as a flat record, in location then item id order."""
    result = await db.execute(
        select(Location)
        .options(selectinload(Location.items), selectinload(Location.hours))
        .order_by(Location.id)
    )
    records: list[ItemRecord] = []
    for location in result.scalars().all():
        records.extend(location_to_records(location))
    return records


# ── Read pipeline ──────────────────────────────────────────────────────────────


async def load_locations(
    db: AsyncSession,
    user_id: Optional[str] = None,
    include_snapshot: bool = True,
) -> list[LocationResult]:
    """Merged, grouped and enriched locations (unfiltered, unsorted)."""
    live = await fetch_live_records(db)
    snapshot = load_snapshot() if include_snapshot else []
    records = merge_item_sources(live, snapshot)

    locations = group_items_by_location(records)
    item_keys = [item.item_key for loc in locations for item in loc.items if item.item_key]
    enrichment = await get_item_enrichment(db, item_keys, user_id)
    return enrich_items(locations, enrichment)


async def _filtered_locations(
    db: AsyncSession,
    filters: LocationFilters,
    user_id: Optional[str],
    now: datetime,
) -> list[LocationResult]:
    locations = await load_locations(db, user_id)
    favorite_ids = (
        await get_favorite_item_ids(db, user_id) if filters.favorites_only else set()
    )
    return filter_locations(locations, filters, favorite_ids, now=now)


async def list_locations(
    db: AsyncSession,
    filters: LocationFilters,
    user_id: Optional[str] = None,
    sort_by: SortBy = "name",
    limit: Optional[int] = None,
    offset: int = 0,
    now: Optional[datetime] = None,
) -> LocationListResponse:
    """Filtered, sorted, paginated locations with is_open_now filled in."""
    now = now or datetime.now(timezone.utc)
    filtered = await _filtered_locations(db, filters, user_id, now)
    ordered = sort_locations(filtered, sort_by)
    page = annotate_open_now(paginate(ordered, limit, offset), now)

    logger.info(
        "Listed %d/%d locations (filters=%s)",
        len(page), len(ordered), filters.model_dump(exclude_none=True),
    )
    return LocationListResponse(
        locations=page,
        total=len(ordered),
        limit=limit if limit is not None else len(ordered),
        offset=offset,
    )


async def get_location_pins(
    db: AsyncSession,
    filters: LocationFilters,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[LocationPin]:
    now = now or datetime.now(timezone.utc)
    return locations_to_pins(await _filtered_locations(db, filters, user_id, now))


async def get_neighborhoods(db: AsyncSession) -> list[str]:
    return list_neighborhoods(await load_locations(db))


async def get_location_by_id(
    db: AsyncSession,
    location_id: int,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LocationResult:
    """One stored location with enriched items, stats and open-now."""
    result = await db.execute(
        select(Location)
        .options(selectinload(Location.items), selectinload(Location.hours))
        .where(Location.id == location_id)
    )
    location = result.scalars().first()
    if location is None:
        raise ItemNotFoundError(f"Location {location_id} not found")

    # A location without items (or without a name to group on) still has its own fields
    grouped = group_items_by_location(location_to_records(location))
    if not grouped:
        grouped = [
            LocationResult(
                id=str(location.id),
                restaurant_name=location.restaurant_name,
                address=location.address,
                neighborhood=location.neighborhood,
                latitude=location.latitude,
                longitude=location.longitude,
                geocoded_address=location.geocoded_address,
                geocoding_method=location.geocoding_method,
                allow_minors=location.allow_minors,
                allow_takeout=location.allow_takeout,
                allow_delivery=location.allow_delivery,
                purchase_limits=location.purchase_limits,
                phone=location.phone,
                website=location.website,
                hours=_hour_entries(location),
            )
        ]

    item_keys = [item.item_key for item in grouped[0].items if item.item_key]
    enriched = enrich_items(grouped, await get_item_enrichment(db, item_keys, user_id))
    return annotate_open_now(enriched, now)[0]


async def count_locations(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Location.id)))
    return int(result.scalar_one())


async def count_items(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(LocationItem.id)))
    return int(result.scalar_one())
