"""
Expiry sweeper: moves finished bookings to `expired` and frees their rooms.

The sweep is pull-based. Viewing a listing sweeps that listing, so a
listing's counter is fresh whenever someone looks at it, with no scheduler.
Unviewed listings may carry stale counters; that is safe because the
confirm-time guard in services.inventory never lets them overcommit.
Deployments that want bounded staleness can also enable run_periodic_sweep
(EXPIRY_SWEEP_INTERVAL_SECONDS > 0).

Each confirmed booking is claimed with a conditional
`confirmed -> expired` update before its rooms are released, so two
concurrent viewers never release the same booking twice.
"""

import asyncio
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.core.config import get_settings
from wanderlust.core.logging import get_logger
from wanderlust.core.metrics import expired_bookings, expiry_rooms_released
from wanderlust.core.time import utc_now
from wanderlust.models.booking import Booking, BookingStatus
from wanderlust.services.inventory import release_rooms

logger = get_logger(__name__)


@dataclass(frozen=True)
class SweepResult:
    confirmed_expired: int = 0
    pending_expired: int = 0
    rooms_released: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.confirmed_expired or self.pending_expired)

    def __add__(self, other: "SweepResult") -> "SweepResult":
        return SweepResult(
            self.confirmed_expired + other.confirmed_expired,
            self.pending_expired + other.pending_expired,
            self.rooms_released + other.rooms_released,
        )


def pending_cutoff(now: datetime, ttl_days: Optional[int] = None) -> datetime:
    if ttl_days is None:
        ttl_days = get_settings().PENDING_BOOKING_TTL_DAYS
    return now - timedelta(days=ttl_days)


async def expire_stale_request(
    db: AsyncSession, booking_id: int, now: Optional[datetime] = None
) -> bool:
    """
    pending -> expired for one request older than the TTL. The caller commits.

    True only if this call made the change, so a confirm that loses the
    request to the TTL can report it as terminal.
    """
    claimed = await db.execute(
        update(Booking)
        .where(
            Booking.id == booking_id,
            Booking.status == BookingStatus.PENDING.value,
            Booking.created_at < pending_cutoff(now or utc_now()),
        )
        .values(status=BookingStatus.EXPIRED.value)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        return False
    expired_bookings.labels(previous_status="pending").inc()
    return True


async def sweep_listing(
    db: AsyncSession,
    listing_id: int,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> SweepResult:
    """
    Expire one listing's finished bookings and commit.

    - confirmed with date_to < today  -> expired, rooms_booked released
    - pending created before the TTL  -> expired, no inventory effect
    """
    now = now or utc_now()
    today = today or now.date()

    candidates = (
        await db.execute(
            select(Booking.id, Booking.rooms_booked).where(
                Booking.listing_id == listing_id,
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.date_to < today,
            )
        )
    ).all()

    confirmed_expired = 0
    rooms_released = 0
    for booking_id, rooms in candidates:
        claimed = await db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus.CONFIRMED.value)
            .values(status=BookingStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            # Another sweep or a reject got there first
            continue
        await release_rooms(db, listing_id, rooms)
        confirmed_expired += 1
        rooms_released += rooms
        logger.info(
            "booking_expired",
            booking_id=booking_id,
            listing_id=listing_id,
            previous_status=BookingStatus.CONFIRMED.value,
            rooms_released=rooms,
        )

    stale_pending = await db.execute(
        update(Booking)
        .where(
            Booking.listing_id == listing_id,
            Booking.status == BookingStatus.PENDING.value,
            Booking.created_at < pending_cutoff(now),
        )
        .values(status=BookingStatus.EXPIRED.value)
        .execution_options(synchronize_session=False)
    )
    pending_expired = stale_pending.rowcount or 0

    await db.commit()

    result = SweepResult(confirmed_expired, pending_expired, rooms_released)
    if result.changed:
        expired_bookings.labels(previous_status="confirmed").inc(confirmed_expired)
        expired_bookings.labels(previous_status="pending").inc(pending_expired)
        expiry_rooms_released.inc(rooms_released)
        logger.info(
            "listing_swept",
            listing_id=listing_id,
            confirmed_expired=confirmed_expired,
            pending_expired=pending_expired,
            rooms_released=rooms_released,
        )
    return result


async def sweep_all_listings(
    db: AsyncSession,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> SweepResult:
    """Sweep every listing that has something to expire."""
    now = now or utc_now()
    today = today or now.date()

    result = await db.execute(
        select(Booking.listing_id)
        .where(
            (
                (Booking.status == BookingStatus.CONFIRMED.value)
                & (Booking.date_to < today)
            )
            | (
                (Booking.status == BookingStatus.PENDING.value)
                & (Booking.created_at < pending_cutoff(now))
            )
        )
        .distinct()
    )
    listing_ids = sorted(result.scalars().all())

    total = SweepResult()
    for listing_id in listing_ids:
        total += await sweep_listing(db, listing_id, today=today, now=now)
    return total


async def run_periodic_sweep(database, interval_seconds: float) -> None:
    """Background loop for the optional scheduled sweep. Cancel to stop."""
    logger.info("expiry_sweeper_started", interval_seconds=interval_seconds)
    try:
        while True:
            try:
                async with database.session() as db:
                    result = await sweep_all_listings(db)
                if result.changed:
                    logger.info(
                        "expiry_sweep_completed",
                        confirmed_expired=result.confirmed_expired,
                        pending_expired=result.pending_expired,
                        rooms_released=result.rooms_released,
                    )
            except Exception as e:
                # Keep the loop alive; the lazy per-view sweep still covers correctness
                logger.error("expiry_sweep_failed", error=str(e), exc_info=True)
            await asyncio.sleep(interval_seconds)
    except asyncio.CancelledError:
        logger.info("expiry_sweeper_stopped")
        raise
