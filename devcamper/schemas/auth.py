"""
DevCamper API — Auth & User Request Schemas
============================================

What:  Request bodies for registration, login, profile/password updates,
       password reset and the admin user endpoints.
Why:   Field rules (email format, minimum password length, allowed roles)
       are enforced before any service code runs.
"""

import re
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

# Same rule the original mongoose schema used: local@domain.tld
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _check_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError("Please add a valid email")
    return v


class RegisterRequest(BaseModel):
    """
    Public registration. `admin` cannot be self-assigned; admins are created
    through POST /api/v1/users or the seeder.
    """

    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=6)
    role: Literal["user", "publisher"] = Field(default="user")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)


class LoginRequest(BaseModel):
    # Optional so a missing field is our 400 "Please provide an email and
    # password" rather than FastAPI's 422.
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateDetailsRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=6)


# ── Admin user management ─────────────────────────────────────────────────


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=6)
    role: Literal["user", "publisher", "admin"] = Field(default="user")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    role: Optional[Literal["user", "publisher", "admin"]] = None
    password: Optional[str] = Field(default=None, min_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)
