"""Review router - FastAPI endpoints for provider reviews"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...realtime.hub import RealtimeHub, get_hub
from .schemas import ReviewCreate
from .service import ReviewService

router = APIRouter(prefix="/api", tags=["Reviews"])


def get_review_service(
    db: Session = Depends(get_db), hub: RealtimeHub = Depends(get_hub)
) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db, hub)


@router.post("/addReview")
async def add_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    review, created = await service.add_review(data, current_user)
    return {
        "success": True,
        "message": "Review added successfully" if created else "Review updated successfully",
        "data": {"id": review.id, "rating": review.rating},
    }


@router.get("/reviews/{worker_id}")
async def get_reviews(
    worker_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return {"success": True, "data": service.get_reviews(worker_id)}
