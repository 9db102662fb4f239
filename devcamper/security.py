"""
DevCamper API — Token & Password Helpers
=========================================

What:  JWT signing/verification, password hashing and reset-token generation.
Why:   Keeps every cryptographic primitive in one module so the services
       never touch PyJWT, passlib or hashlib directly.
Who:   AuthService, UserService and the `protect` dependency.

Reset tokens:
    The raw token (40 hex chars) goes out in the email; only its sha256 hex
    digest is stored. The reset endpoint hashes what it receives and looks
    the digest up.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from devcamper.config import settings
from devcamper.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Signed HS256 token whose `sub` is the user id."""
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {"sub": str(user_id), "iat": now, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """
    Verify signature and expiry and return the user id.

    Raises:
        AuthenticationError: bad signature, expired, or malformed subject.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return UUID(payload["sub"])
    except InvalidTokenError as e:
        logger.info("JWT validation failed: %s", str(e))
        raise AuthenticationError() from e
    except (KeyError, ValueError, TypeError) as e:
        logger.info("JWT carries an unusable subject: %s", str(e))
        raise AuthenticationError() from e


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_reset_token() -> Tuple[str, str, datetime]:
    """
    Returns:
        (raw token for the email, sha256 digest to store, expiry time)
    """
    raw = secrets.token_hex(20)
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.reset_token_expire_minutes)
    return raw, hash_reset_token(raw), expires
