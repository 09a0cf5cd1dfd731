from wanderlust.models.user import User
from wanderlust.models.listing import Listing
from wanderlust.models.booking import Booking, BookingStatus
from wanderlust.models.review import Review

__all__ = ["User", "Listing", "Booking", "BookingStatus", "Review"]
