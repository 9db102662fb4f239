"""
DevCamper API — Bootcamp, Course & Review Request Schemas
==========================================================

What:  Validated request bodies for creating and updating bootcamps, courses
       and reviews.
Why:   Length limits, enumerations (careers, minimum skill) and the 1-10
       rating range are checked at the edge, before the services run.

Update models make every field optional; services apply only the fields the
client actually sent (`model_dump(exclude_unset=True)`).
"""

import re
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from devcamper.models.bootcamp import CAREERS

URL_RE = re.compile(r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b[-a-zA-Z0-9()@:%_+.~#?&/=]*$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SkillLevel = Literal["beginner", "intermediate", "advanced"]


def _check_careers(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    unknown = [c for c in v if c not in CAREERS]
    if unknown:
        raise ValueError(f"Unknown careers {unknown}. Must be among: {list(CAREERS)}")
    return v


def _check_website(v: Optional[str]) -> Optional[str]:
    if v and not URL_RE.match(v):
        raise ValueError("Please use a valid URL with HTTP or HTTPS")
    return v


def _check_email(v: Optional[str]) -> Optional[str]:
    if v and not EMAIL_RE.match(v):
        raise ValueError("Please add a valid email")
    return v


# ══════════════════════════════════════════════════════════════════════════
# Bootcamps
# ══════════════════════════════════════════════════════════════════════════


class BootcampCreate(BaseModel):
    """
    `address` is input only: it is geocoded and replaced by the location
    columns (latitude, longitude, formatted_address, city, ...).
    """

    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = None
    address: str = Field(min_length=1)
    careers: List[str] = Field(min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    @field_validator("careers")
    @classmethod
    def validate_careers(cls, v):
        return _check_careers(v)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v):
        return _check_website(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class BootcampUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = None
    address: Optional[str] = Field(default=None, min_length=1)
    careers: Optional[List[str]] = None
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None

    @field_validator("careers")
    @classmethod
    def validate_careers(cls, v):
        return _check_careers(v)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v):
        return _check_website(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


# ══════════════════════════════════════════════════════════════════════════
# Courses
# ══════════════════════════════════════════════════════════════════════════


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    weeks: int = Field(ge=1)
    tuition: float = Field(ge=0)
    minimum_skill: SkillLevel
    scholarship_available: bool = False


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[int] = Field(default=None, ge=1)
    tuition: Optional[float] = Field(default=None, ge=0)
    minimum_skill: Optional[SkillLevel] = None
    scholarship_available: Optional[bool] = None


# ══════════════════════════════════════════════════════════════════════════
# Reviews
# ══════════════════════════════════════════════════════════════════════════


class ReviewCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    text: str = Field(min_length=1)
    rating: int = Field(ge=1, le=10)


class ReviewUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    text: Optional[str] = Field(default=None, min_length=1)
    rating: Optional[int] = Field(default=None, ge=1, le=10)
