"""
Booking model: a request to hold rooms on a listing for a closed date range.

Status machine:
    pending   --confirm-->          confirmed   (rooms reserved)
    pending   --reject-->           rejected
    confirmed --reject-->           rejected    (rooms released)
    pending   --7 days old-->       expired
    confirmed --date_to passed-->   expired     (rooms released)
rejected and expired are terminal.
"""

import enum

from sqlalchemy import Column, Date, Integer, String, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from wanderlust.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.REJECTED, BookingStatus.EXPIRED)


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    rooms_booked = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)

    # Contact details captured with the request
    guest_name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(10), nullable=False)
    people = Column(Integer, nullable=False, default=1)
    special_requests = Column(String(300), nullable=True)

    user = relationship("User", back_populates="bookings")
    listing = relationship("Listing", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("rooms_booked > 0", name="check_booking_rooms_positive"),
        CheckConstraint("date_to >= date_from", name="check_booking_date_range"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'rejected', 'expired')",
            name="check_booking_status",
        ),
        # Overlap queries: confirmed bookings of one listing by date
        Index("ix_bookings_listing_status_dates", "listing_id", "status", "date_from", "date_to"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, listing={self.listing_id}, "
            f"{self.date_from}..{self.date_to}, rooms={self.rooms_booked}, status={self.status})>"
        )
