"""
Booking endpoints: guests request, owners confirm or reject.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.api.errors import unwrap
from wanderlust.core.logging import get_logger
from wanderlust.core.security import get_current_user_id
from wanderlust.db.session import get_db
from wanderlust.models.booking import BookingStatus
from wanderlust.schemas.booking import BookingCreate, BookingDecisionResponse, BookingResponse
from wanderlust.services.booking_service import (
    confirm_booking,
    get_booking_for_user,
    list_owner_requests,
    list_user_bookings,
    reject_booking,
    request_booking,
)
from wanderlust.services.cache_service import invalidate_listing_cache
from wanderlust.services.inventory import read_inventory
from wanderlust.services.outcomes import Outcome

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


async def _decision_response(db: AsyncSession, outcome: Outcome) -> BookingDecisionResponse:
    booking = unwrap(outcome)
    if outcome.changed:
        # rooms_available changed, and the index shows it
        await invalidate_listing_cache()
    inventory = await read_inventory(db, booking.listing_id)
    return BookingDecisionResponse(
        message=outcome.message,
        booking_id=booking.id,
        status=booking.status,
        changed=outcome.changed,
        rooms_available=inventory[0] if inventory else None,
    )


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Request rooms on a listing. The booking starts out pending; rooms are
    only taken from the listing when the owner confirms.
    """
    return unwrap(await request_booking(db, user_id, data))


@router.get("/", response_model=list[BookingResponse])
async def list_my_bookings(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Bookings made by the authenticated user."""
    return await list_user_bookings(db, user_id)


@router.get("/requests", response_model=list[BookingResponse])
async def list_booking_requests(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Bookings on the authenticated user's listings."""
    return await list_owner_requests(db, user_id, status_filter)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Booking confirmation page data; only the guest who booked may see it."""
    return unwrap(await get_booking_for_user(db, booking_id, user_id))


@router.post("/{booking_id}/confirm", response_model=BookingDecisionResponse)
async def confirm_booking_endpoint(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Owner confirms a pending booking, taking its rooms out of inventory."""
    return await _decision_response(db, await confirm_booking(db, booking_id, user_id))


@router.post("/{booking_id}/reject", response_model=BookingDecisionResponse)
async def reject_booking_endpoint(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Owner rejects a booking; a confirmed one gives its rooms back."""
    return await _decision_response(db, await reject_booking(db, booking_id, user_id))
