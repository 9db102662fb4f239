"""
DevCamper API — Review Service
===============================

What:  Review CRUD and upkeep of Bootcamp.average_rating (plain mean of the
       ratings, NULL without reviews). One review per user per bootcamp.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.database import flush_unique
from devcamper.dependencies import ensure_owner
from devcamper.exceptions import NotFoundError
from devcamper.models.bootcamp import Bootcamp
from devcamper.models.review import Review
from devcamper.models.user import User
from devcamper.schemas.bootcamp import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)


class ReviewService:
    async def refresh_average_rating(self, db: AsyncSession, bootcamp_id: UUID) -> Optional[float]:
        mean = await db.scalar(select(func.avg(Review.rating)).where(Review.bootcamp_id == bootcamp_id))
        average = float(mean) if mean is not None else None
        await db.execute(update(Bootcamp).where(Bootcamp.id == bootcamp_id).values(average_rating=average))
        return average

    async def list_for_bootcamp(self, db: AsyncSession, bootcamp_id: UUID) -> List[Review]:
        result = await db.execute(
            select(Review).where(Review.bootcamp_id == bootcamp_id).order_by(Review.created_at, Review.id)
        )
        return list(result.scalars().all())

    async def get_review(self, db: AsyncSession, review_id: UUID, with_bootcamp: bool = False) -> Review:
        stmt = select(Review).where(Review.id == review_id)
        if with_bootcamp:
            stmt = stmt.options(selectinload(Review.bootcamp))
        review = (await db.execute(stmt)).scalar_one_or_none()
        if review is None:
            raise NotFoundError(resource="review", resource_id=str(review_id))
        return review

    async def add_review(self, db: AsyncSession, bootcamp_id: UUID, user: User, payload: ReviewCreate) -> Review:
        """
        Raises:
            NotFoundError: no such bootcamp.
            DuplicateError: the user already reviewed this bootcamp.
        """
        if await db.get(Bootcamp, bootcamp_id) is None:
            raise NotFoundError(resource="bootcamp", resource_id=str(bootcamp_id))

        review = Review(**payload.model_dump(), bootcamp_id=bootcamp_id, user_id=user.id)
        db.add(review)
        await flush_unique(db, "review")
        await db.refresh(review)
        await self.refresh_average_rating(db, bootcamp_id)
        logger.info("Review %s added to bootcamp %s by %s", review.id, bootcamp_id, user.id)
        return review

    async def update_review(self, db: AsyncSession, review_id: UUID, user: User, payload: ReviewUpdate) -> Review:
        review = await self.get_review(db, review_id)
        ensure_owner(review.user_id, user, f"update review {review_id}")

        for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(review, key, value)
        await db.flush()
        await self.refresh_average_rating(db, review.bootcamp_id)
        return review

    async def delete_review(self, db: AsyncSession, review_id: UUID, user: User) -> None:
        review = await self.get_review(db, review_id)
        ensure_owner(review.user_id, user, f"delete review {review_id}")

        bootcamp_id = review.bootcamp_id
        await db.delete(review)
        await db.flush()
        await self.refresh_average_rating(db, bootcamp_id)


review_service = ReviewService()
