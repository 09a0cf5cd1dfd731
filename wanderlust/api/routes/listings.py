"""
Listing endpoints. The index is cached in Redis; single listings are not,
because showing one runs the expiry sweep first.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.api.errors import unwrap
from wanderlust.core.logging import get_logger
from wanderlust.core.security import get_current_user_id
from wanderlust.db.session import get_db
from wanderlust.schemas.booking import AvailabilityQuery, AvailabilityResponse
from wanderlust.schemas.listing import (
    Category,
    ListingCreate,
    ListingDetailResponse,
    ListingListResponse,
    ListingResponse,
    ListingUpdate,
)
from wanderlust.services.availability import check_availability
from wanderlust.services.booking_service import delete_listing
from wanderlust.services.cache_service import (
    get_cached_listings,
    invalidate_listing_cache,
    make_listing_list_key,
    set_cached_listings,
)
from wanderlust.services.expiry_service import sweep_listing
from wanderlust.services.listing_service import (
    create_listing,
    get_listing,
    list_listings,
    update_listing,
)
from wanderlust.services.outcomes import Outcome

logger = get_logger(__name__)
router = APIRouter(prefix="/listings", tags=["Listings"])


@router.get("/", response_model=ListingListResponse)
async def list_listings_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    category: Optional[Category] = Query(None),
    q: Optional[str] = Query(None, max_length=100, description="Search title or location"),
    db: AsyncSession = Depends(get_db),
):
    """All listings, optionally filtered by category and/or a search term."""
    key = make_listing_list_key(page, page_size, category, q)
    cached = await get_cached_listings(key)
    if cached:
        cached["cached"] = True
        return ListingListResponse(**cached)

    listings, total = await list_listings(db, page, page_size, category=category, query=q)
    response_data = {
        "listings": [ListingResponse.model_validate(item).model_dump() for item in listings],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_listings(key, response_data)
    return ListingListResponse(**response_data)


@router.post("/", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing_endpoint(
    data: ListingCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    listing = await create_listing(db, data, user_id)
    await invalidate_listing_cache()
    return listing


@router.get("/{listing_id}", response_model=ListingDetailResponse)
async def show_listing_endpoint(listing_id: int, db: AsyncSession = Depends(get_db)):
    """Show a listing after expiring its finished bookings."""
    sweep = await sweep_listing(db, listing_id)
    if sweep.changed:
        await invalidate_listing_cache()

    listing = await get_listing(db, listing_id)
    if listing is None:
        unwrap(Outcome.not_found("listing", listing_id))
    return listing


@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing_endpoint(
    listing_id: int,
    data: ListingUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    listing = unwrap(await update_listing(db, listing_id, user_id, data))
    await invalidate_listing_cache()
    return listing


@router.delete("/{listing_id}")
async def delete_listing_endpoint(
    listing_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a listing; refused while any booking on it has not ended."""
    outcome = await delete_listing(db, listing_id, user_id)
    unwrap(outcome)
    await invalidate_listing_cache()
    return {"message": outcome.message, "listing_id": listing_id}


@router.get("/{listing_id}/availability", response_model=AvailabilityResponse)
async def availability_endpoint(
    listing_id: int,
    query: AvailabilityQuery = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Would a booking of `rooms` rooms for the range be accepted right now?"""
    outcome = await check_availability(
        db, listing_id, query.date_from, query.date_to, query.rooms
    )
    if outcome.value is None:
        unwrap(outcome)
    return AvailabilityResponse(**asdict(outcome.value))
