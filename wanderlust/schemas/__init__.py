from wanderlust.schemas.user import UserCreate, UserResponse, UserLogin, Token
from wanderlust.schemas.review import ReviewCreate, ReviewResponse
from wanderlust.schemas.listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    ListingDetailResponse,
    ListingListResponse,
)
from wanderlust.schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingDecisionResponse,
    AvailabilityQuery,
    AvailabilityResponse,
)

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "ReviewCreate", "ReviewResponse",
    "ListingCreate", "ListingUpdate", "ListingResponse", "ListingDetailResponse", "ListingListResponse",
    "BookingCreate", "BookingResponse", "BookingDecisionResponse",
    "AvailabilityQuery", "AvailabilityResponse",
]
