"""SQLAlchemy ORM models package."""

from wingfinder.database import Base
from wingfinder.models.location import Location, LocationItem, LocationHour
from wingfinder.models.rating import ItemRating
from wingfinder.models.favorite import Favorite

__all__ = ["Base", "Location", "LocationItem", "LocationHour", "ItemRating", "Favorite"]
