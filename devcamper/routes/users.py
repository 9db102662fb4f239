"""
DevCamper API — User Administration Routes
===========================================

Every route requires an admin. Password hashes and reset tokens are never
returned and cannot be used as list filters.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import authorize
from devcamper.models.user import User
from devcamper.schemas.auth import UserCreate, UserUpdate
from devcamper.schemas.common import DataResponse, ErrorResponse, ResultEnvelope
from devcamper.services.query_resolver import query_resolver
from devcamper.services.user_service import user_service

router = APIRouter(
    prefix="/api/v1/users",
    tags=["Users"],
    dependencies=[Depends(authorize("admin"))],
    responses={
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "Not an admin", "model": ErrorResponse},
    },
)


@router.get("", response_model=ResultEnvelope, summary="List users")
async def list_users(request: Request, db: AsyncSession = Depends(get_db_session)) -> ResultEnvelope:
    return await query_resolver.resolve(db, User, request.query_params)


@router.get("/{user_id}", response_model=DataResponse, summary="Get a single user")
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    user = await user_service.get_user(db, user_id)
    return DataResponse(data=user.to_dict())


@router.post("", status_code=201, response_model=DataResponse, summary="Create a user")
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    user = await user_service.create_from_payload(db, payload)
    return DataResponse(data=user.to_dict())


@router.put("/{user_id}", response_model=DataResponse, summary="Update a user")
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    user = await user_service.update_user(db, user_id, payload)
    return DataResponse(data=user.to_dict())


@router.delete("/{user_id}", response_model=DataResponse, summary="Delete a user")
async def delete_user(user_id: UUID, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    await user_service.delete_user(db, user_id)
    return DataResponse(data={})
