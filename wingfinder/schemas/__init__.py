"""Pydantic schemas package."""

from wingfinder.schemas.location import (
    WING_TYPES,
    EnrichmentRequest,
    HourEntry,
    ItemEnrichment,
    ItemRecord,
    ItemResult,
    LocationListResponse,
    LocationPin,
    LocationResult,
    WingType,
)
from wingfinder.schemas.filters import LocationFilters, SortBy
from wingfinder.schemas.rating import (
    BatchRatingsRequest,
    MutationResult,
    RatingCreate,
    RatingRead,
    RatingStats,
)
from wingfinder.schemas.favorite import (
    FavoritedItem,
    FavoriteRead,
    FavoriteToggleResponse,
)
from wingfinder.schemas.admin import (
    ClearDataResult,
    ImageUpdate,
    ItemKeyBackfillResult,
    MigrationRequest,
    MigrationResult,
)

__all__ = [
    "WING_TYPES", "WingType",
    "HourEntry", "ItemRecord", "ItemEnrichment", "ItemResult",
    "LocationResult", "LocationPin", "LocationListResponse", "EnrichmentRequest",
    "LocationFilters", "SortBy",
    "RatingCreate", "RatingRead", "RatingStats", "BatchRatingsRequest", "MutationResult",
    "FavoriteRead", "FavoriteToggleResponse", "FavoritedItem",
    "MigrationRequest", "MigrationResult", "ClearDataResult",
    "ImageUpdate", "ItemKeyBackfillResult",
]
