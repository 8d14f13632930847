"""
Hotel API - Review Endpoints
============================
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.deps import get_current_user, get_db, require_admin

from services import ReviewService
from schemas import CurrentUser, MessageResponse, ReviewCreate, ReviewDTO, ReviewUpdate

router = APIRouter()


class ReviewEnvelope(BaseModel):
    message: str
    review: ReviewDTO


@router.get(
    "",
    response_model=List[ReviewDTO],
    summary="List Reviews",
    dependencies=[Depends(require_admin)],
)
def list_reviews(
    booking_id: Optional[int] = Query(default=None),
    customer_id: Optional[int] = Query(default=None),
    rating: Optional[int] = Query(default=None, ge=1, le=5),
    db: Session = Depends(get_db),
):
    return ReviewService.list_reviews(db, booking_id, customer_id, rating)


@router.get(
    "/{review_id}",
    response_model=ReviewDTO,
    summary="Get Review",
    dependencies=[Depends(require_admin)],
)
def get_review(review_id: int, db: Session = Depends(get_db)):
    return ReviewService.get_review(db, review_id)


@router.post(
    "",
    response_model=ReviewEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Review a Stay",
    description="One review per booking, by its customer, after check-out."
)
def create_review(
    data: ReviewCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReviewEnvelope(message="Review created successfully", review=ReviewService.create_review(db, user, data))


@router.put("/{review_id}", response_model=ReviewEnvelope, summary="Update Review")
def update_review(
    review_id: int,
    data: ReviewUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReviewEnvelope(
        message="Review updated successfully",
        review=ReviewService.update_review(db, user, review_id, data),
    )


@router.delete("/{review_id}", response_model=MessageResponse, summary="Delete Review")
def delete_review(
    review_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ReviewService.delete_review(db, user, review_id)
    return MessageResponse(message="Review deleted successfully")
