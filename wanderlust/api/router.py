"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from wanderlust.api.routes import auth, listings, reviews, bookings

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(listings.router)
api_router.include_router(reviews.router)
api_router.include_router(bookings.router)
