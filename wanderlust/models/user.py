"""
Accounts. There is no separate host role: whoever creates a listing owns
it, and anyone signed in can request bookings and write reviews.
"""

from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship

from wanderlust.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Login key
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # As host
    listings = relationship("Listing", back_populates="owner")
    # As guest
    bookings = relationship("Booking", back_populates="user")
    reviews = relationship("Review", back_populates="author")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
