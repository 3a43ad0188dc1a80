"""
Filter and sort contract for location listing.
Every field is optional; an absent field means "don't filter".
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from wingfinder.schemas.location import WingType

SortBy = Literal["name", "rating", "neighborhood"]


class LocationFilters(BaseModel):
    """
    Tri-state predicates for filter_locations().

    The policy flags (allow_minors, allow_takeout, allow_delivery) compare
    for equality when set, so False selects venues without the policy.
    gluten_free, is_open_now and favorites_only only narrow when True.
    """

    search_term: Optional[str] = None
    neighborhood: Optional[str] = None
    gluten_free: Optional[bool] = None
    allow_minors: Optional[bool] = None
    allow_takeout: Optional[bool] = None
    allow_delivery: Optional[bool] = None
    is_open_now: Optional[bool] = None
    type: Optional[WingType] = None
    favorites_only: Optional[bool] = None

    @property
    def has_item_filters(self) -> bool:
        """True when an item-level predicate is active."""
        return bool(self.gluten_free) or self.type is not None
