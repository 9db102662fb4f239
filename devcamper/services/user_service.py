"""
DevCamper API — User Service
=============================

What:  Account persistence shared by registration and the admin users API.
Who:   AuthService and the /api/v1/users routes.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import flush_unique
from devcamper.exceptions import NotFoundError
from devcamper.models.course import Course
from devcamper.models.review import Review
from devcamper.models.user import User
from devcamper.schemas.auth import UserCreate, UserUpdate
from devcamper.security import hash_password
from devcamper.services.course_service import course_service
from devcamper.services.review_service import review_service

logger = logging.getLogger(__name__)


class UserService:
    async def get_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def create_user(self, db: AsyncSession, name: str, email: str, password: str, role: str = "user") -> User:
        user = User(
            name=name,
            email=email.strip().lower(),
            role=role,
            password_hash=hash_password(password),
        )
        db.add(user)
        await flush_unique(db, "user")
        await db.refresh(user)
        logger.info("User created: %s (role=%s)", user.id, user.role)
        return user

    async def create_from_payload(self, db: AsyncSession, payload: UserCreate) -> User:
        return await self.create_user(db, payload.name, payload.email, payload.password, payload.role)

    async def update_user(self, db: AsyncSession, user_id: UUID, payload: UserUpdate) -> User:
        user = await self.get_user(db, user_id)
        changes: Dict[str, Any] = payload.model_dump(exclude_unset=True, exclude_none=True)
        password = changes.pop("password", None)
        for key, value in changes.items():
            setattr(user, key, value)
        if password:
            user.password_hash = hash_password(password)
        await flush_unique(db, "user")
        return user

    async def delete_user(self, db: AsyncSession, user_id: UUID) -> None:
        """
        Remove the account. Its bootcamps, courses and reviews go with it
        (ON DELETE CASCADE), so the aggregates of every other bootcamp the
        user contributed to are recomputed afterwards.
        """
        user = await self.get_user(db, user_id)
        touched = set()
        for model in (Course, Review):
            result = await db.execute(select(model.bootcamp_id).where(model.user_id == user_id).distinct())
            touched.update(result.scalars().all())

        await db.delete(user)
        await db.flush()

        for bootcamp_id in touched:
            await course_service.refresh_average_cost(db, bootcamp_id)
            await review_service.refresh_average_rating(db, bootcamp_id)
        logger.info("User deleted: %s (%d bootcamps re-aggregated)", user_id, len(touched))


user_service = UserService()
