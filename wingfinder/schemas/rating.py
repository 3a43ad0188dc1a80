"""Pydantic schemas for item ratings."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RatingCreate(BaseModel):
    """
    Body for PUT /ratings/items/{item_id}.
    Range and whole-number checks happen in the ratings service so the
    same rule applies to every caller.
    """

    rating: float
    review: Optional[str] = Field(default=None, max_length=4000)


class RatingRead(BaseModel):
    """A stored rating row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    item_id: int
    rating: int
    review: Optional[str]
    created_at: datetime
    updated_at: datetime


class RatingStats(BaseModel):
    """Average (rounded to one decimal) and count for one item."""

    average_rating: float = 0.0
    rating_count: int = 0
    user_rating: Optional[int] = None


class BatchRatingsRequest(BaseModel):
    """Body for POST /ratings/batch."""

    item_ids: list[int] = Field(default_factory=list, max_length=1000)


class MutationResult(BaseModel):
    """Generic success envelope for rating mutations."""

    success: bool
    message: Optional[str] = None
