"""
Review service. Any signed-in user may review a listing; only the author
may delete the review.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.core.logging import get_logger
from wanderlust.models.listing import Listing
from wanderlust.models.review import Review
from wanderlust.schemas.review import ReviewCreate
from wanderlust.services.outcomes import Outcome

logger = get_logger(__name__)


async def create_review(
    db: AsyncSession, listing_id: int, author_id: int, data: ReviewCreate
) -> Outcome[Review]:
    exists = (
        await db.execute(select(Listing.id).where(Listing.id == listing_id))
    ).scalar_one_or_none()
    if exists is None:
        return Outcome.not_found("listing", listing_id)

    review = Review(
        listing_id=listing_id,
        author_id=author_id,
        rating=data.rating,
        comment=data.comment,
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)

    logger.info("review_created", review_id=review.id, listing_id=listing_id, rating=review.rating)
    return Outcome.success(review, "New review created")


async def delete_review(
    db: AsyncSession, listing_id: int, review_id: int, actor_id: int
) -> Outcome[int]:
    review = (
        await db.execute(
            select(Review).where(Review.id == review_id, Review.listing_id == listing_id)
        )
    ).scalar_one_or_none()
    if review is None:
        return Outcome.not_found("review", review_id)
    if review.author_id != actor_id:
        return Outcome.forbidden("review", review_id, "You are not the author of this review")

    await db.delete(review)
    await db.commit()

    logger.info("review_deleted", review_id=review_id, listing_id=listing_id)
    return Outcome.success(review_id, "Review deleted")
