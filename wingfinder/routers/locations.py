"""
Locations router — filtered location lists, map pins and single-location detail.

Filters are plain query parameters; any parameter left out means
"don't filter". Identity (X-User-ID) is optional and only affects
user_rating / is_favorited and the favorites_only filter.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wingfinder.config import settings
from wingfinder.database import get_db
from wingfinder.routers.deps import get_current_user_id, to_http_error
from wingfinder.schemas.filters import LocationFilters, SortBy
from wingfinder.schemas.location import (
    EnrichmentRequest,
    ItemEnrichment,
    LocationListResponse,
    LocationPin,
    LocationResult,
    WingType,
)
from wingfinder.services import location_service
from wingfinder.services.enrichment import get_item_enrichment
from wingfinder.services.errors import WingFinderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["locations"])


def location_filters(
    search_term: Optional[str] = Query(default=None, max_length=200),
    neighborhood: Optional[str] = Query(default=None),
    gluten_free: Optional[bool] = Query(default=None),
    allow_minors: Optional[bool] = Query(default=None),
    allow_takeout: Optional[bool] = Query(default=None),
    allow_delivery: Optional[bool] = Query(default=None),
    is_open_now: Optional[bool] = Query(default=None),
    type: Optional[WingType] = Query(default=None),
    favorites_only: Optional[bool] = Query(default=None),
) -> LocationFilters:
    """Collect filter query parameters into a LocationFilters."""
    return LocationFilters(
        search_term=search_term,
        neighborhood=neighborhood,
        gluten_free=gluten_free,
        allow_minors=allow_minors,
        allow_takeout=allow_takeout,
        allow_delivery=allow_delivery,
        is_open_now=is_open_now,
        type=type,
        favorites_only=favorites_only,
    )


@router.get("", response_model=LocationListResponse)
async def list_locations(
    filters: LocationFilters = Depends(location_filters),
    sort_by: SortBy = Query(default="name"),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> LocationListResponse:
    """
    Return locations matching every supplied filter.

    - Live rows and the static snapshot are merged by item key
    - Items carry average rating, rating count and, for an identified
      caller, their own rating and favorite flag
    - average_rating 0 with review_count 0 means "no reviews yet"
    - limit is optional; without it the whole filtered list is returned
    """
    return await location_service.list_locations(
        db,
        filters,
        user_id=user_id,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )


@router.get("/pins", response_model=list[LocationPin])
async def location_pins(
    filters: LocationFilters = Depends(location_filters),
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[LocationPin]:
    """Lightweight markers for the filtered locations that have coordinates."""
    return await location_service.get_location_pins(db, filters, user_id=user_id)


@router.get("/neighborhoods", response_model=list[str])
async def neighborhoods(db: AsyncSession = Depends(get_db)) -> list[str]:
    """Sorted distinct neighborhoods across all locations."""
    return await location_service.get_neighborhoods(db)


@router.get("/count")
async def count_locations(db: AsyncSession = Depends(get_db)) -> dict:
    return {"count": await location_service.count_locations(db)}


@router.get("/items/count")
async def count_items(db: AsyncSession = Depends(get_db)) -> dict:
    return {"count": await location_service.count_items(db)}


@router.post("/enrichment", response_model=dict[str, ItemEnrichment])
async def item_enrichment(
    body: EnrichmentRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict[str, ItemEnrichment]:
    """Rating/favorite facts for the given item keys. Unknown keys are omitted."""
    return await get_item_enrichment(db, body.item_keys, user_id)


@router.get("/{location_id}", response_model=LocationResult)
async def get_location(
    location_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> LocationResult:
    """One stored location with its items, hours, stats and open-now flag."""
    try:
        return await location_service.get_location_by_id(db, location_id, user_id=user_id)
    except WingFinderError as exc:
        raise to_http_error(exc) from exc
