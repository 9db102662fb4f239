"""
DevCamper API — Auth Service
=============================

What:  Registration, login, profile and password management, and the
       forgot/reset password flow.
Why:   The routes only deal with HTTP (bodies, cookies); every rule about
       credentials lives here.
Who:   /api/v1/auth routes.

Password reset flow:
    1. POST /forgotpassword {email}
       → raw token generated; its sha256 + expiry (10 min) stored on the user
       → email with  <base url>/api/v1/auth/resetpassword/<raw token>
       → if the email cannot be sent the token is cleared and the call fails
    2. PUT /resetpassword/<raw token> {password}
       → sha256(raw) must match a user whose expiry is in the future
       → password replaced, token cleared, a fresh access token issued
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import flush_unique
from devcamper.exceptions import (
    AuthenticationError,
    EmailDeliveryError,
    NotFoundError,
    ValidationError,
)
from devcamper.models.user import User
from devcamper.schemas.auth import RegisterRequest, UpdateDetailsRequest
from devcamper.security import generate_reset_token, hash_password, hash_reset_token, verify_password
from devcamper.services.email_service import email_service
from devcamper.services.user_service import user_service

logger = logging.getLogger(__name__)


class AuthService:
    async def register(self, db: AsyncSession, payload: RegisterRequest) -> User:
        return await user_service.create_user(db, payload.name, payload.email, payload.password, payload.role)

    async def login(self, db: AsyncSession, email: Optional[str], password: Optional[str]) -> User:
        """
        Raises:
            ValidationError: email or password missing (400).
            AuthenticationError: unknown email or wrong password (401).
        """
        if not email or not password:
            raise ValidationError(message="Please provide an email and password")

        user = await user_service.get_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise AuthenticationError(message="Invalid credentials")
        return user

    async def update_details(self, db: AsyncSession, user: User, payload: UpdateDetailsRequest) -> User:
        for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(user, key, value)
        await flush_unique(db, "user")
        return user

    async def update_password(self, db: AsyncSession, user: User, current_password: str, new_password: str) -> User:
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError(message="Password is incorrect")
        user.password_hash = hash_password(new_password)
        await db.flush()
        return user

    async def forgot_password(self, db: AsyncSession, email: str, base_url: str) -> None:
        user = await user_service.get_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="user")

        raw_token, token_hash, expires = generate_reset_token()
        user.reset_password_token = token_hash
        user.reset_password_expire = expires
        await db.flush()

        reset_url = f"{base_url.rstrip('/')}/api/v1/auth/resetpassword/{raw_token}"
        body = (
            "You are receiving this email because you (or someone else) has "
            "requested the reset of a password. Please make a PUT request to:\n\n"
            f"{reset_url}"
        )
        try:
            await email_service.send(to=user.email, subject="Password reset token", body=body)
        except EmailDeliveryError:
            user.reset_password_token = None
            user.reset_password_expire = None
            await db.flush()
            raise

    async def reset_password(self, db: AsyncSession, raw_token: str, password: str) -> User:
        result = await db.execute(
            select(User).where(
                User.reset_password_token == hash_reset_token(raw_token),
                User.reset_password_expire > datetime.now(timezone.utc),
            )
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise ValidationError(message="Invalid token", field="resettoken")

        user.password_hash = hash_password(password)
        user.reset_password_token = None
        user.reset_password_expire = None
        await db.flush()
        logger.info("Password reset for user %s", user.id)
        return user


auth_service = AuthService()
