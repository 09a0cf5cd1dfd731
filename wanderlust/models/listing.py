"""
Listing model with room inventory tracking.

Key design decisions:
- `total_rooms` is the authoritative capacity; bookings never change it
- `rooms_available` is a live counter of rooms not held by a confirmed
  booking. It is denormalized for the confirm-time guard and must only be
  changed through wanderlust.services.inventory (single conditional UPDATEs)
- CHECK constraints are the last line of defence against overcommit
"""

from sqlalchemy import Column, Float, Integer, String, Text, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from wanderlust.db.base import Base, TimestampMixin

CATEGORIES = (
    "Mountains",
    "Beaches",
    "Cities",
    "Castles",
    "Pools",
    "Camping",
    "Farms",
    "Arctic",
    "Trending",
    "Rooms",
    "Iconic Cities",
)

DEFAULT_IMAGE_FILENAME = "listingimage"
DEFAULT_IMAGE_URL = (
    "https://images.unsplash.com/photo-1757503745964-c76d18d947e4"
    "?w=500&auto=format&fit=crop&q=60"
)


class Listing(Base, TimestampMixin):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    location = Column(String(255), nullable=False)
    country = Column(String(100), nullable=False)
    category = Column(String(32), nullable=False)

    image_url = Column(String(1024), nullable=False, default=DEFAULT_IMAGE_URL)
    image_filename = Column(String(255), nullable=False, default=DEFAULT_IMAGE_FILENAME)

    phone_number = Column(String(20), nullable=True)
    country_code = Column(String(8), nullable=True)

    # Geocoding fallback point; the service never geocodes on its own
    latitude = Column(Float, nullable=False, default=0.0)
    longitude = Column(Float, nullable=False, default=0.0)

    total_rooms = Column(Integer, nullable=False)
    rooms_available = Column(Integer, nullable=False)

    owner = relationship("User", back_populates="listings")
    bookings = relationship("Booking", back_populates="listing")
    reviews = relationship(
        "Review",
        back_populates="listing",
        lazy="selectin",
        order_by="Review.created_at.desc()",
    )

    __table_args__ = (
        CheckConstraint("rooms_available >= 0", name="check_rooms_available_non_negative"),
        CheckConstraint("total_rooms > 0", name="check_total_rooms_positive"),
        CheckConstraint("rooms_available <= total_rooms", name="check_rooms_available_lte_total"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        Index("ix_listings_category", "category"),
    )

    @property
    def rooms_committed(self) -> int:
        return self.total_rooms - self.rooms_available

    def __repr__(self) -> str:
        return (
            f"<Listing(id={self.id}, title={self.title}, "
            f"available={self.rooms_available}/{self.total_rooms})>"
        )
