"""
Pydantic schemas for listing-related request/response validation.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from wanderlust.schemas.review import ReviewResponse

Category = Literal[
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
]

PHONE_PATTERN = r"^\+?\d{7,15}$"


class ListingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    location: str = Field(..., min_length=1, max_length=255)
    country: str = Field(..., min_length=1, max_length=100)
    category: Category
    total_rooms: int = Field(..., ge=1, le=10000)
    image_url: Optional[str] = Field(None, max_length=1024)
    image_filename: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    country_code: Optional[str] = Field(None, max_length=8)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class ListingUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[Category] = None
    total_rooms: Optional[int] = Field(None, ge=1, le=10000)
    image_url: Optional[str] = Field(None, max_length=1024)
    image_filename: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    country_code: Optional[str] = Field(None, max_length=8)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator(
        "title",
        "description",
        "price",
        "location",
        "country",
        "category",
        "total_rooms",
        "image_filename",
        "latitude",
        "longitude",
    )
    @classmethod
    def not_null(cls, v, info):
        """These may be omitted but not cleared."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ListingResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: Optional[str]
    price: float
    location: str
    country: str
    category: str
    image_url: str
    image_filename: str
    phone_number: Optional[str]
    country_code: Optional[str]
    latitude: float
    longitude: float
    total_rooms: int
    rooms_available: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ListingDetailResponse(ListingResponse):
    reviews: list[ReviewResponse] = []


class ListingListResponse(BaseModel):
    listings: list[ListingResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False
