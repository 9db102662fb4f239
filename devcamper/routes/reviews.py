"""
DevCamper API — Review Routes
==============================

Route Inventory:
    GET    /api/v1/reviews                          public, Query Resolver
    GET    /api/v1/bootcamps/{bootcamp_id}/reviews  public, unpaginated
    GET    /api/v1/reviews/{id}                     public
    POST   /api/v1/bootcamps/{bootcamp_id}/reviews  user/admin
    PUT    /api/v1/reviews/{id}                     user/admin, review owner
    DELETE /api/v1/reviews/{id}                     user/admin, review owner
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import authorize
from devcamper.models.review import Review
from devcamper.models.user import User
from devcamper.schemas.bootcamp import ReviewCreate, ReviewUpdate
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse, ResultEnvelope
from devcamper.services.course_service import BOOTCAMP_SUMMARY
from devcamper.services.query_resolver import ResolveOptions, query_resolver
from devcamper.services.review_service import review_service

router = APIRouter(prefix="/api/v1", tags=["Reviews"])

user_or_admin = authorize("user", "admin")

LIST_OPTIONS = ResolveOptions(populate="bootcamp", populate_fields=BOOTCAMP_SUMMARY)


@router.get("/reviews", response_model=ResultEnvelope, summary="List reviews (filter, select, sort, paginate)")
async def list_reviews(request: Request, db: AsyncSession = Depends(get_db_session)) -> ResultEnvelope:
    return await query_resolver.resolve(db, Review, request.query_params, LIST_OPTIONS)


@router.get("/bootcamps/{bootcamp_id}/reviews", response_model=ListResponse, summary="All reviews of a bootcamp")
async def list_bootcamp_reviews(bootcamp_id: UUID, db: AsyncSession = Depends(get_db_session)) -> ListResponse:
    reviews = await review_service.list_for_bootcamp(db, bootcamp_id)
    return ListResponse(count=len(reviews), data=[r.to_dict() for r in reviews])


@router.get(
    "/reviews/{review_id}",
    response_model=DataResponse,
    responses={404: {"description": "Review not found", "model": ErrorResponse}},
    summary="Get a single review",
)
async def get_review(review_id: UUID, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    review = await review_service.get_review(db, review_id, with_bootcamp=True)
    return DataResponse(data=review.to_dict(relations={"bootcamp": BOOTCAMP_SUMMARY}))


@router.post(
    "/bootcamps/{bootcamp_id}/reviews",
    status_code=201,
    response_model=DataResponse,
    responses={
        400: {"description": "Bootcamp already reviewed by this user", "model": ErrorResponse},
        404: {"description": "Bootcamp not found", "model": ErrorResponse},
    },
    summary="Review a bootcamp",
)
async def add_review(
    bootcamp_id: UUID,
    payload: ReviewCreate,
    user: User = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    review = await review_service.add_review(db, bootcamp_id, user, payload)
    return DataResponse(data=review.to_dict())


@router.put("/reviews/{review_id}", response_model=DataResponse, summary="Update a review")
async def update_review(
    review_id: UUID,
    payload: ReviewUpdate,
    user: User = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    review = await review_service.update_review(db, review_id, user, payload)
    return DataResponse(data=review.to_dict())


@router.delete("/reviews/{review_id}", response_model=DataResponse, summary="Delete a review")
async def delete_review(
    review_id: UUID,
    user: User = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    await review_service.delete_review(db, review_id, user)
    return DataResponse(data={})
