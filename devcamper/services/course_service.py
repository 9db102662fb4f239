"""
DevCamper API — Course Service
===============================

What:  Course CRUD scoped to bootcamps, and upkeep of Bootcamp.average_cost.
Who:   /api/v1/courses and /api/v1/bootcamps/{id}/courses routes.

average_cost:
    Mean tuition of the bootcamp's courses rounded UP to a multiple of 10
    (mean 9,233.5 → 9,240). Recomputed after every course create, update and
    delete; NULL once the last course is gone.
"""

import logging
import math
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.dependencies import ensure_owner
from devcamper.exceptions import NotFoundError
from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course
from devcamper.models.user import User
from devcamper.schemas.bootcamp import CourseCreate, CourseUpdate

logger = logging.getLogger(__name__)

BOOTCAMP_SUMMARY = ("name", "description")


class CourseService:
    async def refresh_average_cost(self, db: AsyncSession, bootcamp_id: UUID) -> Optional[float]:
        mean = await db.scalar(select(func.avg(Course.tuition)).where(Course.bootcamp_id == bootcamp_id))
        average = float(math.ceil(mean / 10) * 10) if mean is not None else None
        await db.execute(update(Bootcamp).where(Bootcamp.id == bootcamp_id).values(average_cost=average))
        logger.debug("Bootcamp %s average_cost=%s", bootcamp_id, average)
        return average

    async def list_for_bootcamp(self, db: AsyncSession, bootcamp_id: UUID) -> List[Course]:
        result = await db.execute(
            select(Course).where(Course.bootcamp_id == bootcamp_id).order_by(Course.created_at, Course.id)
        )
        return list(result.scalars().all())

    async def get_course(self, db: AsyncSession, course_id: UUID, with_bootcamp: bool = False) -> Course:
        stmt = select(Course).where(Course.id == course_id)
        if with_bootcamp:
            stmt = stmt.options(selectinload(Course.bootcamp))
        course = (await db.execute(stmt)).scalar_one_or_none()
        if course is None:
            raise NotFoundError(resource="course", resource_id=str(course_id))
        return course

    async def add_course(self, db: AsyncSession, bootcamp_id: UUID, user: User, payload: CourseCreate) -> Course:
        bootcamp = await db.get(Bootcamp, bootcamp_id)
        if bootcamp is None:
            raise NotFoundError(resource="bootcamp", resource_id=str(bootcamp_id))
        ensure_owner(bootcamp.user_id, user, f"add a course to bootcamp {bootcamp_id}")

        course = Course(**payload.model_dump(), bootcamp_id=bootcamp_id, user_id=user.id)
        db.add(course)
        await db.flush()
        await db.refresh(course)
        await self.refresh_average_cost(db, bootcamp_id)
        logger.info("Course %s added to bootcamp %s", course.id, bootcamp_id)
        return course

    async def update_course(self, db: AsyncSession, course_id: UUID, user: User, payload: CourseUpdate) -> Course:
        course = await self.get_course(db, course_id)
        ensure_owner(course.user_id, user, f"update course {course_id}")

        for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(course, key, value)
        await db.flush()
        await self.refresh_average_cost(db, course.bootcamp_id)
        return course

    async def delete_course(self, db: AsyncSession, course_id: UUID, user: User) -> None:
        course = await self.get_course(db, course_id)
        ensure_owner(course.user_id, user, f"delete course {course_id}")

        bootcamp_id = course.bootcamp_id
        await db.delete(course)
        await db.flush()
        await self.refresh_average_cost(db, bootcamp_id)


course_service = CourseService()
