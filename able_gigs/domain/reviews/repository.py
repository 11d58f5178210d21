"""Review repository - Database operations for feedback and recommendations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Review


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def find_review(db: Session, gig_id: str, author_user_id: str, target_user_id: str) -> Optional[Review]:
        return (
            db.query(Review)
            .filter(
                Review.gig_id == gig_id,
                Review.author_user_id == author_user_id,
                Review.target_user_id == target_user_id,
            )
            .first()
        )

    @staticmethod
    def create_review(db: Session, **data) -> Review:
        review = Review(**data)
        db.add(review)
        db.flush()
        return review
