"""
DevCamper API — Auth Guard Dependencies
========================================

What:  FastAPI dependencies that authenticate the caller and check roles,
       plus the ownership check used by the services.
How:   `get_current_user` reads `Authorization: Bearer <token>` or, failing
       that, the `token` cookie; verifies it; loads the user.
       `authorize("publisher", "admin")` builds a dependency that also
       requires one of the roles.

Status codes:
    401  no / bad / expired token, unknown user, not the record owner
    403  role not allowed on the route

Example:
    @router.post("", dependencies=[Depends(authorize("publisher", "admin"))])
"""

import logging
from typing import Callable, Optional

from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.exceptions import AuthenticationError, ForbiddenError, NotAuthorizedError
from devcamper.models.user import User
from devcamper.security import decode_access_token

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    token_cookie: Optional[str] = Cookie(default=None, alias="token"),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """The `protect` guard: resolves the caller or raises AuthenticationError."""
    token = creds.credentials if creds else token_cookie
    if not token:
        raise AuthenticationError()

    user_id = decode_access_token(token)
    user = await db.get(User, user_id)
    if user is None:
        logger.info("Token for missing user %s rejected", user_id)
        raise AuthenticationError()

    request.state.user_id = str(user.id)
    return user


def authorize(*roles: str) -> Callable:
    """Dependency factory: the current user must hold one of `roles`."""

    async def _inner(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise ForbiddenError(role=user.role)
        return user

    return _inner


def ensure_owner(owner_id, user: User, action: str) -> None:
    """Raise NotAuthorizedError unless `user` owns the record or is an admin."""
    if user.role == "admin":
        return
    if owner_id is None or owner_id != user.id:
        raise NotAuthorizedError(user_id=str(user.id), action=action)
