"""Location, item and hours ORM models."""

from sqlalchemy import (
    Column, Integer, Text, String, Boolean, Float, JSON,
    TIMESTAMP, ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship

from wingfinder.database import Base


class Location(Base):
    """
    A restaurant or venue serving wings.
    restaurant_name is the natural key used when grouping item records.
    """

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_name = Column(Text, nullable=False, index=True)
    address = Column(Text, nullable=False, server_default="")
    neighborhood = Column(Text, nullable=False, server_default="", index=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    geocoded_address = Column(Text, nullable=True)
    geocoding_method = Column(String(50), nullable=True)

    # Policy flags
    allow_minors = Column(Boolean, nullable=False, server_default="0")
    allow_takeout = Column(Boolean, nullable=False, server_default="0")
    allow_delivery = Column(Boolean, nullable=False, server_default="0")
    purchase_limits = Column(Boolean, nullable=False, server_default="0")

    website = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)

    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    items = relationship(
        "LocationItem", back_populates="location", cascade="all, delete-orphan"
    )
    hours = relationship(
        "LocationHour", back_populates="location", cascade="all, delete-orphan"
    )


class LocationItem(Base):
    """
    A single wing offering at one location.
    types holds the decoded wing-type set as a sorted JSON list.
    """

    __tablename__ = "location_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    location_id = Column(
        Integer,
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    item_name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    alt_description = Column(Text, nullable=True)

    types = Column(JSON, nullable=False, default=lambda: ["meat"])
    gluten_free = Column(Boolean, nullable=False, server_default="0")
    price = Column(Float, nullable=True)

    url = Column(Text, nullable=True)
    image = Column(Text, nullable=True)       # local image path
    image_url = Column(Text, nullable=True)   # scraped source URL

    # md5(restaurant_item_address)[:12], correlates rows with the snapshot
    item_key = Column(String(32), nullable=True, index=True)

    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    location = relationship("Location", back_populates="items")


class LocationHour(Base):
    """One calendar date's operating-hours statement for a location."""

    __tablename__ = "location_hours"
    __table_args__ = (
        UniqueConstraint("location_id", "full_date", name="uq_location_hours_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    location_id = Column(
        Integer,
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    day_of_week = Column(String(20), nullable=False)
    date = Column(String(20), nullable=False)         # short display date, e.g. "Sep 30"
    full_date = Column(String(10), nullable=False)    # ISO date, e.g. "2025-09-30"
    hours = Column(Text, nullable=False)

    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )

    # Relationships
    location = relationship("Location", back_populates="hours")
