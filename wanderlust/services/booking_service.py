"""
Booking lifecycle: request, confirm, reject, and listing deletion.

CONCURRENCY STRATEGY: Conditional transitions + guarded inventory
==================================================================

Problem:
  1. Two owner actions on the SAME booking race (double click, two tabs).
     Both read status=pending, both decrement inventory. Rooms leak.
  2. Confirmations of DIFFERENT bookings race on one listing's last room.
     Both read rooms_available=1, both succeed. Overbooking.

Solution:
  1. Every status change is a conditional UPDATE on the expected current
     status:

       UPDATE bookings SET status = 'confirmed'
       WHERE id = :id AND status = 'pending'

     Only one racer gets rowcount == 1. The loser re-reads the booking and
     reports what actually happened (already confirmed, now rejected, ...).
  2. The room decrement is the guarded UPDATE in services.inventory, run in
     the same transaction as the status claim. If the guard fails the
     transaction is rolled back, so the booking is still pending.

  A lost claim is retried (re-read, re-decide) up to MAX_TRANSITION_ATTEMPTS
  times. The state machine has no cycles and at most two hops from pending,
  so three attempts always reach a decision.

Transactions:
  Mutating operations here own their transaction: they commit on success
  and roll back on every non-success path.
"""

import time
from datetime import date
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.core.logging import get_logger
from wanderlust.core.metrics import booking_latency, record_booking_transition
from wanderlust.core.time import utc_today
from wanderlust.models.booking import Booking, BookingStatus
from wanderlust.models.listing import Listing
from wanderlust.models.review import Review
from wanderlust.schemas.booking import BookingCreate
from wanderlust.services.availability import check_availability
from wanderlust.services.expiry_service import expire_stale_request
from wanderlust.services.inventory import release_rooms, reserve_rooms
from wanderlust.services.outcomes import Outcome, OutcomeKind

logger = get_logger(__name__)

MAX_TRANSITION_ATTEMPTS = 3


async def _load_booking(
    db: AsyncSession, booking_id: int
) -> tuple[Optional[Booking], Optional[Listing]]:
    """Booking plus its listing, always re-read from the store."""
    result = await db.execute(
        select(Booking, Listing)
        .join(Listing, Booking.listing_id == Listing.id)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    row = result.one_or_none()
    if row is None:
        return None, None
    return row.Booking, row.Listing


async def _transition(
    db: AsyncSession,
    booking_id: int,
    expected: BookingStatus,
    new: BookingStatus,
) -> bool:
    """Compare-and-set on booking status. True if this call made the change."""
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == expected.value)
        .values(status=new.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _already_terminal(booking_id: int, status: str, action: str) -> Outcome[Booking]:
    return Outcome.failure(
        OutcomeKind.ALREADY_TERMINAL,
        "booking",
        booking_id,
        f"Booking {booking_id} is already {status} and cannot be {action}",
    )


async def request_booking(
    db: AsyncSession,
    user_id: int,
    data: BookingCreate,
) -> Outcome[Booking]:
    """
    Create a pending booking if the listing can take it.

    Inventory is NOT touched here; rooms are only committed on confirm.
    """
    with booking_latency.labels(operation="request").time():
        check = await check_availability(
            db, data.listing_id, data.date_from, data.date_to, data.rooms_booked
        )
        if check.is_error:
            await db.rollback()
            record_booking_transition("request", check.kind.value)
            return Outcome.failure(check.kind, check.entity, check.entity_id, check.message)

        booking = Booking(
            listing_id=data.listing_id,
            user_id=user_id,
            date_from=data.date_from,
            date_to=data.date_to,
            rooms_booked=data.rooms_booked,
            status=BookingStatus.PENDING.value,
            guest_name=data.guest_name,
            email=data.email,
            phone=data.phone,
            people=data.people,
            special_requests=data.special_requests,
        )
        db.add(booking)
        await db.commit()
        await db.refresh(booking)

    record_booking_transition("request", OutcomeKind.OK.value)
    logger.info(
        "booking_requested",
        booking_id=booking.id,
        listing_id=booking.listing_id,
        user_id=user_id,
        date_from=str(booking.date_from),
        date_to=str(booking.date_to),
        rooms=booking.rooms_booked,
    )
    return Outcome.success(booking, "Booking request submitted")


async def confirm_booking(
    db: AsyncSession,
    booking_id: int,
    acting_owner_id: int,
) -> Outcome[Booking]:
    """
    pending -> confirmed, taking rooms_booked out of the listing's inventory.

    Confirming an already confirmed booking is an informational no-op and
    never decrements twice.
    """
    start = time.perf_counter()

    for attempt in range(1, MAX_TRANSITION_ATTEMPTS + 1):
        booking, listing = await _load_booking(db, booking_id)
        if booking is None:
            return Outcome.not_found("booking", booking_id)

        if listing.owner_id != acting_owner_id:
            logger.warning(
                "booking_confirm_forbidden", booking_id=booking_id, user_id=acting_owner_id
            )
            return Outcome.forbidden(
                "booking", booking_id, "You are not allowed to confirm this booking"
            )

        if booking.status == BookingStatus.CONFIRMED.value:
            record_booking_transition("confirm", OutcomeKind.ALREADY_CONFIRMED.value)
            return Outcome.info(
                OutcomeKind.ALREADY_CONFIRMED, booking, "This booking is already confirmed"
            )
        if booking.status != BookingStatus.PENDING.value:
            record_booking_transition("confirm", OutcomeKind.ALREADY_TERMINAL.value)
            return _already_terminal(booking_id, booking.status, "confirmed")

        # A request past its TTL is expired even if no sweep has reached it yet
        if await expire_stale_request(db, booking_id):
            await db.commit()
            record_booking_transition("confirm", OutcomeKind.ALREADY_TERMINAL.value)
            logger.info("booking_expired", booking_id=booking_id, previous_status="pending")
            return _already_terminal(booking_id, BookingStatus.EXPIRED.value, "confirmed")

        listing_id = listing.id
        rooms = booking.rooms_booked

        # Range check against total capacity; the live counter is guarded below
        check = await check_availability(
            db,
            listing_id,
            booking.date_from,
            booking.date_to,
            rooms,
            exclude_booking_id=booking_id,
            use_fast_path=False,
        )
        if check.is_error:
            await db.rollback()
            record_booking_transition("confirm", check.kind.value)
            return Outcome.failure(check.kind, "booking", booking_id, check.message)

        if not await _transition(db, booking_id, BookingStatus.PENDING, BookingStatus.CONFIRMED):
            logger.info(
                "booking_transition_retry",
                booking_id=booking_id,
                operation="confirm",
                attempt=attempt,
            )
            await db.rollback()
            continue

        if not await reserve_rooms(db, listing_id, rooms):
            await db.rollback()
            record_booking_transition("confirm", OutcomeKind.INSUFFICIENT_INVENTORY.value)
            logger.warning(
                "booking_confirm_insufficient_inventory",
                booking_id=booking_id,
                listing_id=listing_id,
                rooms=rooms,
            )
            return Outcome.failure(
                OutcomeKind.INSUFFICIENT_INVENTORY,
                "listing",
                listing_id,
                "No rooms available to confirm this booking",
            )

        await db.commit()
        await db.refresh(booking)

        booking_latency.labels(operation="confirm").observe(time.perf_counter() - start)
        record_booking_transition("confirm", OutcomeKind.OK.value)
        logger.info(
            "booking_confirmed",
            booking_id=booking_id,
            listing_id=listing_id,
            owner_id=acting_owner_id,
            rooms=rooms,
            attempt=attempt,
        )
        return Outcome.success(booking, "Booking confirmed successfully")

    # The state graph is acyclic, so a decision is always reached above
    raise RuntimeError(f"Confirm of booking {booking_id} did not settle")


async def reject_booking(
    db: AsyncSession,
    booking_id: int,
    acting_owner_id: int,
) -> Outcome[Booking]:
    """
    pending -> rejected, or confirmed -> rejected with the rooms given back.

    Rejecting twice is an informational no-op; expired bookings cannot be
    rejected.
    """
    start = time.perf_counter()

    for attempt in range(1, MAX_TRANSITION_ATTEMPTS + 1):
        booking, listing = await _load_booking(db, booking_id)
        if booking is None:
            return Outcome.not_found("booking", booking_id)

        if listing.owner_id != acting_owner_id:
            logger.warning(
                "booking_reject_forbidden", booking_id=booking_id, user_id=acting_owner_id
            )
            return Outcome.forbidden(
                "booking", booking_id, "You are not allowed to reject this booking"
            )

        if booking.status == BookingStatus.REJECTED.value:
            record_booking_transition("reject", OutcomeKind.ALREADY_REJECTED.value)
            return Outcome.info(
                OutcomeKind.ALREADY_REJECTED, booking, "This booking is already rejected"
            )
        if booking.status == BookingStatus.EXPIRED.value:
            record_booking_transition("reject", OutcomeKind.ALREADY_TERMINAL.value)
            return _already_terminal(booking_id, booking.status, "rejected")

        previous = BookingStatus(booking.status)
        listing_id = listing.id
        rooms = booking.rooms_booked

        if not await _transition(db, booking_id, previous, BookingStatus.REJECTED):
            logger.info(
                "booking_transition_retry",
                booking_id=booking_id,
                operation="reject",
                attempt=attempt,
            )
            await db.rollback()
            continue

        if previous is BookingStatus.CONFIRMED:
            await release_rooms(db, listing_id, rooms)

        await db.commit()
        await db.refresh(booking)

        booking_latency.labels(operation="reject").observe(time.perf_counter() - start)
        record_booking_transition("reject", OutcomeKind.OK.value)
        logger.info(
            "booking_rejected",
            booking_id=booking_id,
            listing_id=listing_id,
            owner_id=acting_owner_id,
            previous_status=previous.value,
            rooms_restored=rooms if previous is BookingStatus.CONFIRMED else 0,
        )
        return Outcome.success(booking, "Booking has been rejected")

    raise RuntimeError(f"Reject of booking {booking_id} did not settle")


async def delete_listing(
    db: AsyncSession,
    listing_id: int,
    acting_owner_id: int,
    today: Optional[date] = None,
) -> Outcome[int]:
    """
    Delete a listing once every booking on it has ended.

    Any booking with date_to >= today blocks deletion, whatever its status:
    a pending request for next month still counts. Reviews and the remaining
    (past) bookings are removed with the listing.
    """
    today = today or utc_today()

    listing = (
        await db.execute(select(Listing).where(Listing.id == listing_id))
    ).scalar_one_or_none()
    if listing is None:
        return Outcome.not_found("listing", listing_id)

    if listing.owner_id != acting_owner_id:
        return Outcome.forbidden("listing", listing_id, "You are not the owner of this listing")

    active = (
        await db.execute(
            select(func.count())
            .select_from(Booking)
            .where(Booking.listing_id == listing_id, Booking.date_to >= today)
        )
    ).scalar_one()
    if active:
        await db.rollback()
        logger.info("listing_delete_blocked", listing_id=listing_id, active_bookings=active)
        return Outcome.failure(
            OutcomeKind.BLOCKED,
            "listing",
            listing_id,
            "You cannot delete this listing until all bookings have ended",
        )

    try:
        reviews = await db.execute(delete(Review).where(Review.listing_id == listing_id))
        bookings = await db.execute(delete(Booking).where(Booking.listing_id == listing_id))
        await db.execute(delete(Listing).where(Listing.id == listing_id))
        await db.commit()
    except IntegrityError:
        # A booking for this listing landed between the guard and the delete
        await db.rollback()
        logger.info("listing_delete_blocked", listing_id=listing_id, reason="concurrent_booking")
        return Outcome.failure(
            OutcomeKind.BLOCKED,
            "listing",
            listing_id,
            "You cannot delete this listing until all bookings have ended",
        )

    logger.info(
        "listing_deleted",
        listing_id=listing_id,
        owner_id=acting_owner_id,
        reviews_deleted=reviews.rowcount,
        past_bookings_deleted=bookings.rowcount,
    )
    return Outcome.success(listing_id, "Listing deleted successfully")


async def get_booking_for_user(
    db: AsyncSession, booking_id: int, user_id: int
) -> Outcome[Booking]:
    """A booking as seen by the guest who requested it."""
    booking = (
        await db.execute(select(Booking).where(Booking.id == booking_id))
    ).scalar_one_or_none()
    if booking is None:
        return Outcome.not_found("booking", booking_id)
    if booking.user_id != user_id:
        return Outcome.forbidden(
            "booking", booking_id, "You are not authorized to view this booking"
        )
    return Outcome.success(booking)


async def list_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    """Get all bookings made by a user, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def list_owner_requests(
    db: AsyncSession,
    owner_id: int,
    status: Optional[BookingStatus] = None,
) -> list[Booking]:
    """Bookings on every listing the user owns, newest first."""
    query = (
        select(Booking)
        .join(Listing, Booking.listing_id == Listing.id)
        .where(Listing.owner_id == owner_id)
    )
    if status is not None:
        query = query.where(Booking.status == status.value)
    result = await db.execute(query.order_by(Booking.created_at.desc(), Booking.id.desc()))
    return list(result.scalars().all())
