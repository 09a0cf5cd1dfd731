"""
Listing service: create, read, index/search and owner updates.

Deletion lives in booking_service because it is guarded by bookings.
"""

from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.core.logging import get_logger
from wanderlust.models.listing import Listing, DEFAULT_IMAGE_FILENAME, DEFAULT_IMAGE_URL
from wanderlust.schemas.listing import ListingCreate, ListingUpdate
from wanderlust.services.inventory import resize_listing
from wanderlust.services.outcomes import Outcome, OutcomeKind

logger = get_logger(__name__)


async def create_listing(db: AsyncSession, data: ListingCreate, owner_id: int) -> Listing:
    """Create a listing with every room available."""
    listing = Listing(
        owner_id=owner_id,
        title=data.title,
        description=data.description,
        price=data.price,
        location=data.location.strip(),
        country=data.country,
        category=data.category,
        # An empty URL means "use the placeholder"
        image_url=data.image_url or DEFAULT_IMAGE_URL,
        image_filename=data.image_filename or DEFAULT_IMAGE_FILENAME,
        phone_number=data.phone_number,
        country_code=data.country_code,
        latitude=data.latitude if data.latitude is not None else 0.0,
        longitude=data.longitude if data.longitude is not None else 0.0,
        total_rooms=data.total_rooms,
        rooms_available=data.total_rooms,
    )
    db.add(listing)
    await db.commit()
    await db.refresh(listing)

    logger.info(
        "listing_created",
        listing_id=listing.id,
        owner_id=owner_id,
        title=listing.title,
        rooms=listing.total_rooms,
    )
    return listing


async def get_listing(db: AsyncSession, listing_id: int) -> Optional[Listing]:
    """A listing with its reviews, re-read from the store."""
    result = await db.execute(
        select(Listing)
        .where(Listing.id == listing_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_listings(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    category: Optional[str] = None,
    query: Optional[str] = None,
) -> tuple[list[Listing], int]:
    """
    Listing index with optional category filter and title/location search.
    The search is a case-insensitive substring match on either field.
    """
    stmt = select(Listing)

    if category:
        stmt = stmt.where(Listing.category == category)

    if query:
        pattern = f"%{query.strip()}%"
        stmt = stmt.where(or_(Listing.title.ilike(pattern), Listing.location.ilike(pattern)))

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await db.execute(count_stmt)).scalar()

    result = await db.execute(
        stmt.order_by(Listing.created_at.desc(), Listing.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def update_listing(
    db: AsyncSession,
    listing_id: int,
    owner_id: int,
    data: ListingUpdate,
) -> Outcome[Listing]:
    """
    Owner edit. Descriptive fields are plain writes; a capacity change goes
    through inventory.resize_listing so held rooms stay held.
    """
    listing = await get_listing(db, listing_id)
    if listing is None:
        return Outcome.not_found("listing", listing_id)
    if listing.owner_id != owner_id:
        return Outcome.forbidden("listing", listing_id, "You are not the owner of this listing")

    changes = data.model_dump(exclude_unset=True)
    new_total = changes.pop("total_rooms", None)

    if new_total is not None and new_total != listing.total_rooms:
        committed = listing.rooms_committed
        if not await resize_listing(db, listing_id, new_total):
            await db.rollback()
            return Outcome.failure(
                OutcomeKind.INSUFFICIENT_INVENTORY,
                "listing",
                listing_id,
                f"{committed} room(s) are held by confirmed bookings; "
                f"total rooms cannot drop to {new_total}",
            )

    for field, value in changes.items():
        if field == "location" and value is not None:
            value = value.strip()
        if field == "image_url" and not value:
            value = DEFAULT_IMAGE_URL
        setattr(listing, field, value)

    await db.commit()
    listing = await get_listing(db, listing_id)

    logger.info("listing_updated", listing_id=listing_id, fields=sorted(data.model_fields_set))
    return Outcome.success(listing, "Listing updated successfully")
