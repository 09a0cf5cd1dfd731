"""
Review endpoints, nested under a listing.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlust.api.errors import unwrap
from wanderlust.core.security import get_current_user_id
from wanderlust.db.session import get_db
from wanderlust.schemas.review import ReviewCreate, ReviewResponse
from wanderlust.services.review_service import create_review, delete_review

router = APIRouter(prefix="/listings/{listing_id}/reviews", tags=["Reviews"])


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review_endpoint(
    listing_id: int,
    data: ReviewCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return unwrap(await create_review(db, listing_id, user_id, data))


@router.delete("/{review_id}")
async def delete_review_endpoint(
    listing_id: int,
    review_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    outcome = await delete_review(db, listing_id, review_id, user_id)
    unwrap(outcome)
    return {"message": outcome.message, "review_id": review_id}
