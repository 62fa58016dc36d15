"""Review repository - Database operations for provider reviews"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Review, User


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_review(db: Session, worker_id: int, user_id: int) -> Optional[Review]:
        return (
            db.query(Review)
            .filter(Review.worker_id == worker_id, Review.user_id == user_id)
            .first()
        )

    @staticmethod
    def upsert_review(
        db: Session, worker_id: int, user_id: int, rating: int, description: str
    ) -> tuple[Review, bool]:
        """Returns the review and whether it was newly created"""
        review = ReviewRepository.get_review(db, worker_id, user_id)
        created = review is None
        if created:
            review = Review(worker_id=worker_id, user_id=user_id)
            db.add(review)
        review.rating = rating
        review.description = description
        db.commit()
        db.refresh(review)
        return review, created

    @staticmethod
    def get_worker_reviews(db: Session, worker_id: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.reviewer))
            .filter(Review.worker_id == worker_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )
