"""
DevCamper API — Course Routes
==============================

Route Inventory:
    GET    /api/v1/courses                          public, Query Resolver
    GET    /api/v1/bootcamps/{bootcamp_id}/courses  public, unpaginated
    GET    /api/v1/courses/{id}                     public
    POST   /api/v1/bootcamps/{bootcamp_id}/courses  publisher/admin, bootcamp owner
    PUT    /api/v1/courses/{id}                     publisher/admin, course owner
    DELETE /api/v1/courses/{id}                     publisher/admin, course owner

Courses are returned with their bootcamp's name and description.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import authorize
from devcamper.models.course import Course
from devcamper.models.user import User
from devcamper.schemas.bootcamp import CourseCreate, CourseUpdate
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse, ResultEnvelope
from devcamper.services.course_service import BOOTCAMP_SUMMARY, course_service
from devcamper.services.query_resolver import ResolveOptions, query_resolver

router = APIRouter(prefix="/api/v1", tags=["Courses"])

publisher_or_admin = authorize("publisher", "admin")

LIST_OPTIONS = ResolveOptions(populate="bootcamp", populate_fields=BOOTCAMP_SUMMARY)


@router.get("/courses", response_model=ResultEnvelope, summary="List courses (filter, select, sort, paginate)")
async def list_courses(request: Request, db: AsyncSession = Depends(get_db_session)) -> ResultEnvelope:
    return await query_resolver.resolve(db, Course, request.query_params, LIST_OPTIONS)


@router.get("/bootcamps/{bootcamp_id}/courses", response_model=ListResponse, summary="All courses of a bootcamp")
async def list_bootcamp_courses(bootcamp_id: UUID, db: AsyncSession = Depends(get_db_session)) -> ListResponse:
    courses = await course_service.list_for_bootcamp(db, bootcamp_id)
    return ListResponse(count=len(courses), data=[c.to_dict() for c in courses])


@router.get(
    "/courses/{course_id}",
    response_model=DataResponse,
    responses={404: {"description": "Course not found", "model": ErrorResponse}},
    summary="Get a single course",
)
async def get_course(course_id: UUID, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    course = await course_service.get_course(db, course_id, with_bootcamp=True)
    return DataResponse(data=course.to_dict(relations={"bootcamp": BOOTCAMP_SUMMARY}))


@router.post(
    "/bootcamps/{bootcamp_id}/courses",
    status_code=201,
    response_model=DataResponse,
    responses={
        401: {"description": "Not the bootcamp owner", "model": ErrorResponse},
        404: {"description": "Bootcamp not found", "model": ErrorResponse},
    },
    summary="Add a course to a bootcamp",
)
async def add_course(
    bootcamp_id: UUID,
    payload: CourseCreate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    course = await course_service.add_course(db, bootcamp_id, user, payload)
    return DataResponse(data=course.to_dict())


@router.put("/courses/{course_id}", response_model=DataResponse, summary="Update a course")
async def update_course(
    course_id: UUID,
    payload: CourseUpdate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    course = await course_service.update_course(db, course_id, user, payload)
    return DataResponse(data=course.to_dict())


@router.delete("/courses/{course_id}", response_model=DataResponse, summary="Delete a course")
async def delete_course(
    course_id: UUID,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    await course_service.delete_course(db, course_id, user)
    return DataResponse(data={})
