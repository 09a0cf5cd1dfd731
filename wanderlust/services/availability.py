"""
Availability checker: can a listing hold `rooms` more for [date_from, date_to]?

Capacity baseline
-----------------
`total_rooms` is the authoritative capacity. The range check is:

    sum(rooms_booked of confirmed bookings overlapping the range) + rooms <= total_rooms

The live `rooms_available` counter is only used as a fast-path rejection
(and, in the lifecycle manager, as the atomic confirm guard). It counts every
confirmed booking that has not expired yet, so it can be stricter than the
range check, never looser.

Ranges are closed: [a, b] and [c, d] overlap iff a <= d and c <= b, so a stay
ending on the 12th and one starting on the 12th do compete for a room.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.core.logging import get_logger
from wanderlust.core.metrics import record_availability
from wanderlust.models.booking import Booking, BookingStatus
from wanderlust.models.listing import Listing
from wanderlust.services.outcomes import Outcome, OutcomeKind

logger = get_logger(__name__)


@dataclass(frozen=True)
class AvailabilityReport:
    listing_id: int
    date_from: date
    date_to: date
    rooms_requested: int
    rooms_already_booked: int
    total_rooms: int
    rooms_available: int
    available: bool


def ranges_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    return a_from <= b_to and b_from <= a_to


def rooms_committed(bookings: Iterable[Booking], date_from: date, date_to: date) -> int:
    """Rooms held by confirmed bookings that overlap [date_from, date_to]."""
    return sum(
        b.rooms_booked
        for b in bookings
        if b.status == BookingStatus.CONFIRMED.value
        and ranges_overlap(b.date_from, b.date_to, date_from, date_to)
    )


async def fetch_overlapping_confirmed(
    db: AsyncSession,
    listing_id: int,
    date_from: date,
    date_to: date,
    exclude_booking_id: Optional[int] = None,
) -> list[Booking]:
    query = select(Booking).where(
        Booking.listing_id == listing_id,
        Booking.status == BookingStatus.CONFIRMED.value,
        Booking.date_from <= date_to,
        Booking.date_to >= date_from,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def check_availability(
    db: AsyncSession,
    listing_id: int,
    date_from: date,
    date_to: date,
    rooms_requested: int,
    *,
    exclude_booking_id: Optional[int] = None,
    use_fast_path: bool = True,
) -> Outcome[AvailabilityReport]:
    """
    Decide whether the whole request fits; there is no partial acceptance.

    Returns OK or INSUFFICIENT_INVENTORY, both carrying the report, or
    INVALID_RANGE / NOT_FOUND without one. Read-only.
    """
    if date_to < date_from:
        return Outcome.failure(
            OutcomeKind.INVALID_RANGE,
            "listing",
            listing_id,
            f"End date {date_to} is before start date {date_from}",
        )

    result = await db.execute(
        select(Listing.rooms_available, Listing.total_rooms).where(Listing.id == listing_id)
    )
    row = result.one_or_none()
    if row is None:
        return Outcome.not_found("listing", listing_id)

    overlapping = await fetch_overlapping_confirmed(
        db, listing_id, date_from, date_to, exclude_booking_id
    )
    already_booked = rooms_committed(overlapping, date_from, date_to)

    fast_path_ok = not use_fast_path or rooms_requested <= row.rooms_available
    range_ok = already_booked + rooms_requested <= row.total_rooms

    report = AvailabilityReport(
        listing_id=listing_id,
        date_from=date_from,
        date_to=date_to,
        rooms_requested=rooms_requested,
        rooms_already_booked=already_booked,
        total_rooms=row.total_rooms,
        rooms_available=row.rooms_available,
        available=fast_path_ok and range_ok,
    )

    if report.available:
        record_availability("available")
        return Outcome.success(report)

    if not fast_path_ok:
        record_availability("fast_path_rejected")
        message = (
            f"Only {row.rooms_available} room(s) currently available, "
            f"{rooms_requested} requested"
        )
    else:
        record_availability("overlap_rejected")
        message = (
            f"{already_booked} of {row.total_rooms} room(s) already booked between "
            f"{date_from} and {date_to}, {rooms_requested} requested"
        )

    logger.info(
        "availability_rejected",
        listing_id=listing_id,
        date_from=str(date_from),
        date_to=str(date_to),
        requested=rooms_requested,
        already_booked=already_booked,
        rooms_available=row.rooms_available,
        total_rooms=row.total_rooms,
    )
    return Outcome(
        OutcomeKind.INSUFFICIENT_INVENTORY,
        value=report,
        entity="listing",
        entity_id=listing_id,
        message=message,
    )
