"""
Pydantic schemas for booking requests, owner decisions and availability.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class BookingCreate(BaseModel):
    """A guest's request to hold rooms on a listing."""

    listing_id: int
    date_from: date
    date_to: date
    rooms_booked: int = Field(default=1, gt=0, le=100)
    guest_name: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    phone: str = Field(..., pattern=r"^[0-9]{10}$")
    people: int = Field(default=1, ge=1, le=20)
    special_requests: Optional[str] = Field(None, max_length=300)


class AvailabilityQuery(BaseModel):
    date_from: date
    date_to: date
    rooms: int = Field(default=1, gt=0, le=100)


class BookingResponse(BaseModel):
    id: int
    listing_id: int
    user_id: int
    date_from: date
    date_to: date
    rooms_booked: int
    status: str
    guest_name: str
    email: str
    phone: str
    people: int
    special_requests: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingDecisionResponse(BaseModel):
    """Result of an owner confirm/reject; `changed` is False for repeated actions."""

    message: str
    booking_id: int
    status: str
    changed: bool
    rooms_available: Optional[int] = None


class AvailabilityResponse(BaseModel):
    listing_id: int
    date_from: date
    date_to: date
    rooms_requested: int
    rooms_already_booked: int
    total_rooms: int
    rooms_available: int
    available: bool
