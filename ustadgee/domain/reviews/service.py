"""Review service - Business logic for provider reviews"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...exceptions import StoreError
from ...models import USER_TYPE_PROVIDER, Review, User
from ...realtime.hub import RealtimeHub
from ...schemas import NotificationType
from ...services.notification_service import NotificationPayload
from .repository import ReviewRepository
from .schemas import ReviewCreate, ReviewerSummary, ReviewResponse

logger = logging.getLogger(__name__)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session, hub: RealtimeHub):
        self.db = db
        self.repo = ReviewRepository()
        self.hub = hub

    async def add_review(self, data: ReviewCreate, user: User) -> tuple[Review, bool]:
        """Create or update the caller's review of a provider and notify them"""
        if data.worker_id == user.id:
            raise HTTPException(status_code=400, detail="You cannot review yourself")
        worker = self.repo.get_user(self.db, data.worker_id)
        if not worker or worker.user_type != USER_TYPE_PROVIDER:
            raise HTTPException(status_code=404, detail="Provider not found")

        review, created = self.repo.upsert_review(
            self.db, data.worker_id, user.id, data.rating, data.description
        )
        logger.info(
            f"⭐ Review {review.id} {'created' if created else 'updated'} "
            f"for provider {data.worker_id} by user {user.id}"
        )

        try:
            await self.hub.bridge.deliver(
                data.worker_id,
                NotificationPayload(
                    title="New review received",
                    message=f"{user.full_name} rated you {data.rating}/5",
                    type=NotificationType.REVIEW,
                    link_id=review.id,
                    notifier_id=user.id,
                ),
            )
        except StoreError as e:
            logger.error(f"❌ Review {review.id} saved but provider notification failed: {e}")

        return review, created

    def get_reviews(self, worker_id: int) -> dict:
        reviews = self.repo.get_worker_reviews(self.db, worker_id)
        total = len(reviews)
        average = round(sum(r.rating for r in reviews) / total, 2) if total else 0

        return {
            "reviews": [
                ReviewResponse(
                    id=r.id,
                    rating=r.rating,
                    description=r.description,
                    createdAt=r.created_at,
                    reviewer=(
                        ReviewerSummary(
                            id=r.reviewer.id,
                            fullName=r.reviewer.full_name,
                            profileImage=r.reviewer.profile_image,
                        )
                        if r.reviewer
                        else None
                    ),
                ).model_dump(mode="json")
                for r in reviews
            ],
            "average_rating": average,
            "total_reviews": total,
        }
