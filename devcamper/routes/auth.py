"""
DevCamper API — Auth Routes
============================

What:  Registration, login/logout, current-user profile and password reset.
How:   Successful logins answer `{success, token}` and also set the token as
       an httponly `token` cookie, so browser clients need no header handling.

Route Inventory:
    POST /api/v1/auth/register                  public
    POST /api/v1/auth/login                     public
    GET  /api/v1/auth/logout                    private
    GET  /api/v1/auth/me                        private
    PUT  /api/v1/auth/updatedetails             private
    PUT  /api/v1/auth/updatepassword            private
    POST /api/v1/auth/forgotpassword            public
    PUT  /api/v1/auth/resetpassword/{token}     public
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.config import settings
from devcamper.database import get_db_session
from devcamper.dependencies import get_current_user
from devcamper.models.user import User
from devcamper.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from devcamper.schemas.common import DataResponse, ErrorResponse, MessageResponse, TokenResponse
from devcamper.security import create_access_token
from devcamper.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


def send_token(user: User, response: Response) -> TokenResponse:
    """Sign a token for `user`, set it as the `token` cookie and return the body."""
    token = create_access_token(user.id)
    max_age = settings.jwt_cookie_expire_days * 24 * 60 * 60
    response.set_cookie(
        key="token",
        value=token,
        max_age=max_age,
        expires=datetime.now(timezone.utc) + timedelta(seconds=max_age),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return TokenResponse(token=token)


@router.post(
    "/register",
    response_model=TokenResponse,
    responses={400: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Register a user or publisher",
)
async def register(
    payload: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user = await auth_service.register(db, payload)
    return send_token(user, response)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user = await auth_service.login(db, payload.email, payload.password)
    return send_token(user, response)


@router.get("/logout", response_model=DataResponse, summary="Log out (clears the token cookie)")
async def logout(response: Response, user: User = Depends(get_current_user)) -> DataResponse:
    response.set_cookie(
        key="token",
        value="none",
        max_age=10,
        expires=datetime.now(timezone.utc) + timedelta(seconds=10),
        httponly=True,
    )
    return DataResponse(data={})


@router.get(
    "/me",
    response_model=DataResponse,
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Current user",
)
async def get_me(user: User = Depends(get_current_user)) -> DataResponse:
    return DataResponse(data=user.to_dict())


@router.put("/updatedetails", response_model=DataResponse, summary="Update name and email")
async def update_details(
    payload: UpdateDetailsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    user = await auth_service.update_details(db, user, payload)
    return DataResponse(data=user.to_dict())


@router.put(
    "/updatepassword",
    response_model=TokenResponse,
    responses={401: {"description": "Current password is wrong", "model": ErrorResponse}},
    summary="Change password (issues a new token)",
)
async def update_password(
    payload: UpdatePasswordRequest,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user = await auth_service.update_password(db, user, payload.current_password, payload.new_password)
    return send_token(user, response)


@router.post(
    "/forgotpassword",
    response_model=MessageResponse,
    responses={
        404: {"description": "No user with that email", "model": ErrorResponse},
        500: {"description": "Email could not be sent", "model": ErrorResponse},
    },
    summary="Email a password reset link",
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.forgot_password(db, payload.email, str(request.base_url))
    return MessageResponse(data="Email sent")


@router.put(
    "/resetpassword/{resettoken}",
    response_model=TokenResponse,
    responses={400: {"description": "Invalid or expired token", "model": ErrorResponse}},
    summary="Set a new password with a reset token",
)
async def reset_password(
    resettoken: str,
    payload: ResetPasswordRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user = await auth_service.reset_password(db, resettoken, payload.password)
    return send_token(user, response)
