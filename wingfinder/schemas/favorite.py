"""Pydantic schemas for favorites."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FavoriteRead(BaseModel):
    """A stored favorite row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    item_id: int
    created_at: datetime


class FavoriteToggleResponse(BaseModel):
    """Result of POST /favorites/items/{item_id}/toggle."""

    item_id: int
    favorited: bool


class FavoritedItem(BaseModel):
    """A favorited item with its owning location's name and neighborhood."""

    item_id: int
    item_name: str
    location_id: int
    restaurant_name: str
    neighborhood: str
    favorited_at: datetime
