"""
DevCamper API — Bootcamp Routes
================================

What:  Bootcamp CRUD, radius search and photo upload.
Who:   Public reads; writes need the publisher or admin role and, for
       existing bootcamps, ownership (admins bypass).

List queries go through the Query Resolver, e.g.
    GET /api/v1/bootcamps?careers=Business&average_cost[lte]=10000&select=name,average_cost&sort=-average_cost&page=2&limit=5
Each bootcamp in the list carries its `courses`.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.config import settings
from devcamper.database import get_db_session
from devcamper.dependencies import authorize
from devcamper.exceptions import ValidationError
from devcamper.models.bootcamp import Bootcamp
from devcamper.models.user import User
from devcamper.schemas.bootcamp import BootcampCreate, BootcampUpdate
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse, MessageResponse, ResultEnvelope
from devcamper.services.bootcamp_service import bootcamp_service
from devcamper.services.query_resolver import ResolveOptions, query_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bootcamps", tags=["Bootcamps"])

publisher_or_admin = authorize("publisher", "admin")

LIST_OPTIONS = ResolveOptions(populate="courses")


@router.get(
    "",
    response_model=ResultEnvelope,
    responses={400: {"description": "Filter value of the wrong type", "model": ErrorResponse}},
    summary="List bootcamps (filter, select, sort, paginate)",
)
async def list_bootcamps(request: Request, db: AsyncSession = Depends(get_db_session)) -> ResultEnvelope:
    return await query_resolver.resolve(db, Bootcamp, request.query_params, LIST_OPTIONS)


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=ListResponse,
    responses={
        400: {"description": "Zipcode could not be geocoded", "model": ErrorResponse},
        503: {"description": "Geocoder unavailable", "model": ErrorResponse},
    },
    summary="Bootcamps within `distance` miles of a zipcode",
)
async def bootcamps_in_radius(
    zipcode: str,
    distance: float,
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    data = await bootcamp_service.bootcamps_in_radius(db, zipcode, distance)
    return ListResponse(count=len(data), data=data)


@router.get(
    "/{bootcamp_id}",
    response_model=DataResponse,
    responses={404: {"description": "Bootcamp not found", "model": ErrorResponse}},
    summary="Get a single bootcamp",
)
async def get_bootcamp(bootcamp_id: UUID, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
    return DataResponse(data=bootcamp.to_dict())


@router.post(
    "",
    status_code=201,
    response_model=DataResponse,
    responses={
        400: {"description": "Invalid data, duplicate name or already published", "model": ErrorResponse},
        403: {"description": "Role not allowed", "model": ErrorResponse},
    },
    summary="Create a bootcamp",
)
async def create_bootcamp(
    payload: BootcampCreate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    bootcamp = await bootcamp_service.create_bootcamp(db, user, payload)
    return DataResponse(data=bootcamp.to_dict())


@router.put(
    "/{bootcamp_id}",
    response_model=DataResponse,
    responses={
        401: {"description": "Not the owner", "model": ErrorResponse},
        404: {"description": "Bootcamp not found", "model": ErrorResponse},
    },
    summary="Update a bootcamp",
)
async def update_bootcamp(
    bootcamp_id: UUID,
    payload: BootcampUpdate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    bootcamp = await bootcamp_service.update_bootcamp(db, bootcamp_id, user, payload)
    return DataResponse(data=bootcamp.to_dict())


@router.delete(
    "/{bootcamp_id}",
    response_model=DataResponse,
    responses={
        401: {"description": "Not the owner", "model": ErrorResponse},
        404: {"description": "Bootcamp not found", "model": ErrorResponse},
    },
    summary="Delete a bootcamp with its courses and reviews",
)
async def delete_bootcamp(
    bootcamp_id: UUID,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    await bootcamp_service.delete_bootcamp(db, bootcamp_id, user)
    return DataResponse(data={})


@router.put(
    "/{bootcamp_id}/photo",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing file, not an image, or too large", "model": ErrorResponse},
        500: {"description": "Problem with file upload", "model": ErrorResponse},
    },
    summary="Upload a bootcamp photo",
)
async def upload_photo(
    bootcamp_id: UUID,
    file: Optional[UploadFile] = File(default=None, description="Image file"),
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    if file is None:
        raise ValidationError(message="Please upload a file", field="file")
    try:
        # One byte past the limit is enough to reject an oversized upload
        content = await file.read(settings.max_file_upload + 1)
        name = await bootcamp_service.upload_photo(
            db,
            bootcamp_id,
            user,
            filename=file.filename,
            content_type=file.content_type,
            content=content,
        )
    finally:
        await file.close()
    return MessageResponse(data=name)
