"""
Room inventory primitives: the only code allowed to change rooms_available.

CONCURRENCY STRATEGY: Guarded single-statement updates
=======================================================

Problem:
  Two owners' confirmations race on the last room of a listing.
  Both read rooms_available=1, both write 0, both bookings are confirmed.
  Result: two guests, one room.

Solution:
  Every change is one UPDATE whose WHERE clause carries the guard:

    UPDATE listings SET rooms_available = rooms_available - :n
    WHERE id = :listing_id AND rooms_available >= :n

  The database evaluates the guard against the row it is about to write
  (PostgreSQL re-checks it after waiting on the row lock), so the
  read-check-write happens as one step. rowcount == 0 means the guard failed.

  Unlike a version column with a retry loop, there is nothing to retry: if
  the guard fails, there really are not enough rooms right now.

  The CHECK constraints on listings (0 <= rooms_available <= total_rooms)
  remain the final safety net.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.core.logging import get_logger
from wanderlust.core.metrics import inventory_conflicts
from wanderlust.models.listing import Listing
from wanderlust.services.outcomes import InventoryConsistencyError

logger = get_logger(__name__)


async def reserve_rooms(db: AsyncSession, listing_id: int, rooms: int) -> bool:
    """Take `rooms` out of the live counter. False if fewer are available."""
    result = await db.execute(
        update(Listing)
        .where(
            Listing.id == listing_id,
            Listing.rooms_available >= rooms,
        )
        .values(rooms_available=Listing.rooms_available - rooms)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        inventory_conflicts.inc()
        logger.info("rooms_reserve_refused", listing_id=listing_id, rooms=rooms)
        return False
    return True


async def release_rooms(db: AsyncSession, listing_id: int, rooms: int) -> None:
    """
    Give `rooms` back to the live counter.

    Raises InventoryConsistencyError if that would exceed total_rooms: it
    means rooms are being released that were never reserved.
    """
    result = await db.execute(
        update(Listing)
        .where(
            Listing.id == listing_id,
            Listing.rooms_available + rooms <= Listing.total_rooms,
        )
        .values(rooms_available=Listing.rooms_available + rooms)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.error("rooms_release_overflow", listing_id=listing_id, rooms=rooms)
        raise InventoryConsistencyError(
            f"Releasing {rooms} room(s) would exceed capacity of listing {listing_id}"
        )


async def resize_listing(db: AsyncSession, listing_id: int, total_rooms: int) -> bool:
    """
    Change a listing's capacity, shifting rooms_available by the same delta.

    Rooms held by confirmed bookings stay held, so the resize is refused when
    the new total is smaller than what is already committed.
    """
    delta = total_rooms - Listing.total_rooms
    result = await db.execute(
        update(Listing)
        .where(
            Listing.id == listing_id,
            Listing.rooms_available + delta >= 0,
        )
        .values(
            total_rooms=total_rooms,
            rooms_available=Listing.rooms_available + delta,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def read_inventory(db: AsyncSession, listing_id: int) -> Optional[tuple[int, int]]:
    """Fresh (rooms_available, total_rooms) straight from the store, bypassing the identity map."""
    row = (
        await db.execute(
            select(Listing.rooms_available, Listing.total_rooms).where(Listing.id == listing_id)
        )
    ).one_or_none()
    if row is None:
        return None
    return row.rooms_available, row.total_rooms
