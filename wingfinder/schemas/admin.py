"""Pydantic schemas for admin (service-token) endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from wingfinder.schemas.location import ItemRecord


class MigrationRequest(BaseModel):
    """Body for POST /admin/migrate — a batch of flat item records."""

    items: list[ItemRecord] = Field(default_factory=list)


class MigrationResult(BaseModel):
    """Counts of rows written by a migration batch."""

    success: bool = True
    processed: int = 0
    locations_created: int = 0
    items_created: int = 0
    hours_created: int = 0


class ClearDataResult(BaseModel):
    """Counts of rows removed by DELETE /admin/data."""

    success: bool = True
    ratings: int = 0
    favorites: int = 0
    items: int = 0
    hours: int = 0
    locations: int = 0


class ImageUpdate(BaseModel):
    """Body for PATCH /admin/items/{item_id}/image."""

    image_url: str
    image_path: str


class ItemKeyBackfillResult(BaseModel):
    """Result of POST /admin/item-keys."""

    updated: int
    duplicates: list[str] = Field(default_factory=list)
