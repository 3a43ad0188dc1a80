"""ItemRating ORM model — one user's score for one item."""

from sqlalchemy import (
    Column, Integer, Text, String, TIMESTAMP, ForeignKey, UniqueConstraint, func,
)

from wingfinder.database import Base


class ItemRating(Base):
    """
    A 1–5 whole-number rating with an optional review.
    Unique per (user_id, item_id); re-submission updates the row in place.
    user_id is the opaque subject id from the identity provider.
    """

    __tablename__ = "item_ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_item_ratings_user_item"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    item_id = Column(
        Integer,
        ForeignKey("location_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)

    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
