"""
Location aggregation — pure functions over already-fetched item records.
No DB calls. Inputs are never mutated; every step returns new objects.

Pipeline:
  1. merge_item_sources()       — live rows + snapshot, reconciled by item_key
  2. group_items_by_location()  — flat records → LocationResult, grouped by name
  3. enrich_items()             — attach ratings/favorites, refresh stats
  4. filter_locations()         — tri-state predicate set, short-circuiting
  5. sort_locations() / paginate()
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from wingfinder.schemas.filters import LocationFilters, SortBy
from wingfinder.schemas.location import (
    WING_TYPES,
    ItemEnrichment,
    ItemRecord,
    ItemResult,
    LocationPin,
    LocationResult,
    WingType,
)
from wingfinder.services.hours_resolver import HoursResolver, get_resolver
from wingfinder.utils.keys import generate_item_key, generate_location_key

logger = logging.getLogger(__name__)

_DEFAULT_TYPES: list[WingType] = ["meat"]

_POLICY_FLAGS: tuple[str, ...] = ("allow_minors", "allow_takeout", "allow_delivery")


@dataclass
class LocationStats:
    """Derived rating stats. (0.0, 0) is the "no reviews yet" sentinel."""

    average_rating: float = 0.0
    review_count: int = 0

    @property
    def has_reviews(self) -> bool:
        return self.review_count > 0


# ── Decoding ───────────────────────────────────────────────────────────────────


def parse_wing_types(value: Any) -> list[WingType]:
    """
    Decode a wing-type value into a sorted, deduplicated type list.

    Accepts the legacy comma-separated string ("vegan, Vegetarian") or an
    iterable of tokens. Unknown tokens are dropped; the result is never
    empty and falls back to ["meat"].
    """
    if value is None:
        return list(_DEFAULT_TYPES)
    if isinstance(value, str):
        tokens = value.split(",")
    else:
        try:
            tokens = [str(t) for t in value]
        except TypeError:
            return list(_DEFAULT_TYPES)

    found = {t.strip().lower() for t in tokens} & set(WING_TYPES)
    return sorted(found) or list(_DEFAULT_TYPES)


def record_item_key(record: ItemRecord) -> str:
    """The record's item_key, computed from its content when missing."""
    return record.item_key or generate_item_key(
        record.restaurant_name, record.item_name, record.address
    )


# ── Reconciliation ─────────────────────────────────────────────────────────────


def merge_item_sources(
    live: Iterable[ItemRecord],
    snapshot: Iterable[ItemRecord],
) -> list[ItemRecord]:
    """
    Merge live-store rows with snapshot rows, deduplicated by item_key.
    Live rows win; snapshot rows the store does not know are appended.
    """
    merged: list[ItemRecord] = list(live)
    seen = {record_item_key(r) for r in merged}
    added = 0

    for record in snapshot:
        key = record_item_key(record)
        if key in seen:
            continue
        seen.add(key)
        merged.append(record)
        added += 1

    logger.debug(
        "Merged %d live rows with %d snapshot-only rows", len(merged) - added, added
    )
    return merged


# ── Grouping ───────────────────────────────────────────────────────────────────


def _seed_location(record: ItemRecord, name: str) -> LocationResult:
    """Location-level fields come from the first record seen for a name."""
    return LocationResult(
        id=record.location_id or generate_location_key(name, record.address),
        restaurant_name=name,
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
        hours=[h.model_copy() for h in record.hours],
    )


def _build_item(record: ItemRecord, location_id: str) -> ItemResult:
    types = parse_wing_types(record.type)
    item_key = record_item_key(record)
    return ItemResult(
        id=record.item_id or f"temp-{item_key}",
        location_id=location_id,
        item_name=record.item_name,
        description=record.description,
        alt_description=record.alt_description,
        type=types[0],
        types=types,
        gluten_free=record.gluten_free,
        price=record.price,
        url=record.url,
        image=record.image,
        image_url=record.image_url,
        item_key=item_key,
    )


def group_items_by_location(items: Iterable[ItemRecord]) -> list[LocationResult]:
    """
    Group flat item records into locations keyed by restaurant name.
    First-seen wins for address, neighborhood, coordinates, flags and hours.
    Output order follows first appearance of each name.
    """
    locations: dict[str, LocationResult] = {}
    skipped = 0

    for record in items:
        name = (record.restaurant_name or "").strip()
        if not name:
            skipped += 1
            continue

        location = locations.get(name)
        if location is None:
            location = _seed_location(record, name)
            locations[name] = location
        location.items.append(_build_item(record, location.id))

    if skipped:
        logger.debug("Skipped %d item records without a restaurant name", skipped)
    return list(locations.values())


def flatten_locations(locations: Iterable[LocationResult]) -> list[ItemRecord]:
    """Inverse of group_items_by_location(): one record per item."""
    records: list[ItemRecord] = []
    for location in locations:
        for item in location.items:
            records.append(
                ItemRecord(
                    restaurant_name=location.restaurant_name,
                    neighborhood=location.neighborhood,
                    address=location.address,
                    item_name=item.item_name,
                    description=item.description,
                    alt_description=item.alt_description,
                    type=list(item.types),
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
                    hours=[h.model_copy() for h in location.hours],
                    item_key=item.item_key,
                    item_id=item.id,
                    location_id=location.id,
                )
            )
    return records


# ── Enrichment & stats ─────────────────────────────────────────────────────────


def _enrich_item(item: ItemResult, facts: Optional[ItemEnrichment]) -> ItemResult:
    if facts is None:
        return item.model_copy()
    return item.model_copy(
        update={
            "id": facts.item_id,
            "average_rating": facts.average_rating,
            "rating_count": facts.rating_count,
            "user_rating": facts.user_rating,
            "is_favorited": facts.is_favorited,
        }
    )


def compute_location_stats(location: LocationResult) -> LocationStats:
    """
    Mean of item averages over items with at least one rating, plus the
    total rating count. Unrated items are left out of the mean.
    """
    rated = [
        item.average_rating
        for item in location.items
        if item.rating_count > 0 and item.average_rating is not None
    ]
    review_count = sum(item.rating_count for item in location.items)
    if not rated:
        return LocationStats(average_rating=0.0, review_count=review_count)
    return LocationStats(
        average_rating=sum(rated) / len(rated),
        review_count=review_count,
    )


def with_stats(location: LocationResult) -> LocationResult:
    """Copy of location with average_rating/review_count recomputed."""
    stats = compute_location_stats(location)
    return location.model_copy(
        update={"average_rating": stats.average_rating, "review_count": stats.review_count}
    )


def enrich_items(
    locations: Iterable[LocationResult],
    enrichment_by_key: Mapping[str, ItemEnrichment],
) -> list[LocationResult]:
    """
    Attach rating/favorite facts to every item that has a matching item_key.
    Unmatched items keep neutral values. Location stats are refreshed.
    """
    enriched: list[LocationResult] = []
    for location in locations:
        items = [
            _enrich_item(item, enrichment_by_key.get(item.item_key) if item.item_key else None)
            for item in location.items
        ]
        enriched.append(with_stats(location.model_copy(update={"items": items})))
    return enriched


# ── Filtering ──────────────────────────────────────────────────────────────────


def _contains(text: Optional[str], term: str) -> bool:
    return bool(text) and term in text.lower()


def _matches_search(location: LocationResult, term: str) -> bool:
    if _contains(location.restaurant_name, term) or _contains(location.neighborhood, term):
        return True
    return any(
        _contains(item.item_name, term)
        or _contains(item.description, term)
        or _contains(item.alt_description, term)
        for item in location.items
    )


def _item_matches(item: ItemResult, filters: LocationFilters) -> bool:
    if filters.gluten_free and not item.gluten_free:
        return False
    if filters.type is not None and filters.type != item.type and filters.type not in item.types:
        return False
    return True


def _passes(
    location: LocationResult,
    filters: LocationFilters,
    term: Optional[str],
    favorite_item_ids: Collection[str],
    now: datetime,
    resolver: HoursResolver,
) -> bool:
    if term and not _matches_search(location, term):
        return False

    if filters.neighborhood and location.neighborhood != filters.neighborhood:
        return False

    for flag in _POLICY_FLAGS:
        wanted = getattr(filters, flag)
        if wanted is not None and getattr(location, flag) != wanted:
            return False

    if filters.is_open_now and not resolver.is_open_now(location.hours, now):
        return False

    if filters.has_item_filters and not any(
        _item_matches(item, filters) for item in location.items
    ):
        return False

    if filters.favorites_only and not any(
        item.id in favorite_item_ids for item in location.items
    ):
        return False

    return True


def filter_locations(
    locations: Iterable[LocationResult],
    filters: Optional[LocationFilters] = None,
    favorite_item_ids: Collection[str] = frozenset(),
    now: Optional[datetime] = None,
    resolver: Optional[HoursResolver] = None,
) -> list[LocationResult]:
    """
    Return the locations that satisfy every active predicate, in input order.

    Checks run cheapest-first and stop at the first failure: search term,
    neighborhood, policy flags, open-now, item-level predicates (at least one
    item must match all of them), favorites-only. `now` is pinned once so
    every location is judged against the same instant.
    """
    filters = filters or LocationFilters()
    resolver = resolver or get_resolver()
    if now is None:
        now = datetime.now(timezone.utc)

    term = (filters.search_term or "").strip().lower() or None
    favorite_ids = {str(i) for i in favorite_item_ids}

    return [
        location
        for location in locations
        if _passes(location, filters, term, favorite_ids, now, resolver)
    ]


def annotate_open_now(
    locations: Iterable[LocationResult],
    now: Optional[datetime] = None,
    resolver: Optional[HoursResolver] = None,
) -> list[LocationResult]:
    """Copies of locations with is_open_now set for `now`."""
    resolver = resolver or get_resolver()
    if now is None:
        now = datetime.now(timezone.utc)
    return [
        location.model_copy(update={"is_open_now": resolver.is_open_now(location.hours, now)})
        for location in locations
    ]


# ── Ordering & presentation ────────────────────────────────────────────────────


def sort_locations(
    locations: Iterable[LocationResult],
    sort_by: SortBy = "name",
) -> list[LocationResult]:
    """
    Stable sort. "rating" puts the best average first and locations with
    no reviews last; "neighborhood" breaks ties by name.
    """
    if sort_by == "rating":
        key = lambda loc: (loc.review_count == 0, -loc.average_rating)  # noqa: E731
    elif sort_by == "neighborhood":
        key = lambda loc: (loc.neighborhood.lower(), loc.restaurant_name.lower())  # noqa: E731
    else:
        key = lambda loc: loc.restaurant_name.lower()  # noqa: E731
    return sorted(locations, key=key)


def paginate(
    locations: list[LocationResult],
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[LocationResult]:
    """Slice a result list; limit=None returns everything after offset."""
    offset = max(0, offset)
    if limit is None:
        return locations[offset:]
    return locations[offset: offset + max(0, limit)]


def list_neighborhoods(locations: Iterable[LocationResult]) -> list[str]:
    """Sorted distinct non-empty neighborhoods."""
    return sorted({loc.neighborhood for loc in locations if loc.neighborhood})


def locations_to_pins(locations: Iterable[LocationResult]) -> list[LocationPin]:
    """Map markers for locations that have coordinates."""
    return [
        LocationPin(
            id=loc.id,
            restaurant_name=loc.restaurant_name,
            neighborhood=loc.neighborhood,
            latitude=loc.latitude,
            longitude=loc.longitude,
            address=loc.address,
            allow_minors=loc.allow_minors,
            allow_takeout=loc.allow_takeout,
            allow_delivery=loc.allow_delivery,
            purchase_limits=loc.purchase_limits,
        )
        for loc in locations
        if loc.latitude is not None and loc.longitude is not None
    ]
