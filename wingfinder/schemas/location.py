"""Pydantic schemas for item records, locations and enrichment facts."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

WingType = Literal["meat", "vegetarian", "vegan"]

WING_TYPES: tuple[str, ...] = ("meat", "vegetarian", "vegan")

# Accept the camelCase keys of the items snapshot as well as snake_case
_RECORD_CONFIG = ConfigDict(
    alias_generator=AliasGenerator(validation_alias=to_camel),
    populate_by_name=True,
    extra="ignore",
)


class HourEntry(BaseModel):
    """One calendar date's hours, e.g. Tue / Sep 30 / 2025-09-30 / '11 am–10 pm'."""

    model_config = _RECORD_CONFIG

    day_of_week: str = ""
    date: str = ""
    full_date: str
    hours: str = ""


class ItemRecord(BaseModel):
    """
    A flat item row carrying its own restaurant attributes.
    This is the shape of the static snapshot and of the ingestion body;
    live database rows are converted into it before grouping.
    """

    model_config = _RECORD_CONFIG

    restaurant_name: str = ""
    neighborhood: str = ""
    address: str = ""

    item_name: str = ""
    description: Optional[str] = None
    alt_description: Optional[str] = None
    # Legacy comma-separated string ("vegan, vegetarian") or a token list
    type: Optional[Union[str, list[str]]] = None
    gluten_free: bool = False
    price: Optional[float] = None
    url: Optional[str] = None
    image: Optional[str] = None
    image_url: Optional[str] = None

    allow_minors: bool = False
    allow_takeout: bool = False
    allow_delivery: bool = False
    purchase_limits: bool = False

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geocoded_address: Optional[str] = None
    geocoding_method: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None

    hours: list[HourEntry] = Field(default_factory=list)

    item_key: Optional[str] = None
    # Set only for rows read from the live store
    item_id: Optional[str] = None
    location_id: Optional[str] = None


class ItemEnrichment(BaseModel):
    """Per-item rating/favorite facts, keyed by item_key."""

    item_id: str
    average_rating: Optional[float] = None
    rating_count: int = 0
    user_rating: Optional[int] = None
    is_favorited: bool = False


class ItemResult(BaseModel):
    """An item as it appears inside a LocationResult."""

    id: str
    location_id: str
    item_name: str
    description: Optional[str] = None
    alt_description: Optional[str] = None
    type: WingType = "meat"                       # primary type, first of `types`
    types: list[WingType] = Field(default_factory=lambda: ["meat"])
    gluten_free: bool = False
    price: Optional[float] = None
    url: Optional[str] = None
    image: Optional[str] = None
    image_url: Optional[str] = None
    item_key: Optional[str] = None

    # Enrichment
    average_rating: Optional[float] = None
    rating_count: int = 0
    user_rating: Optional[int] = None
    is_favorited: bool = False


class LocationResult(BaseModel):
    """
    A location assembled from its item records.
    average_rating == 0 with review_count == 0 means "no reviews yet",
    never a zero-star rating.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    restaurant_name: str
    address: str = ""
    neighborhood: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geocoded_address: Optional[str] = None
    geocoding_method: Optional[str] = None

    allow_minors: bool = False
    allow_takeout: bool = False
    allow_delivery: bool = False
    purchase_limits: bool = False

    phone: Optional[str] = None
    website: Optional[str] = None

    hours: list[HourEntry] = Field(default_factory=list)
    items: list[ItemResult] = Field(default_factory=list)

    average_rating: float = 0.0
    review_count: int = 0
    is_open_now: Optional[bool] = None


class LocationPin(BaseModel):
    """Lightweight map marker."""

    id: str
    restaurant_name: str
    neighborhood: str
    latitude: float
    longitude: float
    address: str
    allow_minors: bool
    allow_takeout: bool
    allow_delivery: bool
    purchase_limits: bool


class LocationListResponse(BaseModel):
    """Paginated, filtered location list for GET /locations."""

    locations: list[LocationResult]
    total: int
    limit: int
    offset: int


class EnrichmentRequest(BaseModel):
    """Body for POST /locations/enrichment."""

    item_keys: list[str] = Field(default_factory=list, max_length=2000)
