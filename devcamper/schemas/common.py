"""
DevCamper API — Shared Response Schemas
========================================

What:  Response shapes used by every resource: the list Result Envelope,
       single-record and unpaginated-list wrappers, token, error and health
       responses.
Why:   One definition per shape keeps every endpoint's JSON identical and
       drives the OpenAPI docs.

Records are passed through as dicts (`Base.to_dict()`), because a field
selection (`?select=name`) returns a different subset of columns per request.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Result Envelope (Query Resolver output)
# ══════════════════════════════════════════════════════════════════════════


class PageLink(BaseModel):
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")


class ResultEnvelope(BaseModel):
    """
    What:  Paginated list response.

    Pagination links:
        next  present iff skip + limit < total
        prev  present iff skip > 0
        Missing links are left out of the object (never null).

    Example:
        {
            "success": true,
            "count": 10,
            "pagination": {"next": {"page": 3, "limit": 10},
                           "prev": {"page": 1, "limit": 10}},
            "data": [{"id": "...", "name": "Devworks Bootcamp"}, ...]
        }
    """

    success: bool = Field(default=True)
    count: int = Field(description="Number of records in `data` (not the collection total)")
    pagination: Dict[str, PageLink] = Field(default_factory=dict)
    data: List[Dict[str, Any]] = Field(default_factory=list)


class DataResponse(BaseModel):
    """Single record (or empty object after a delete)."""

    success: bool = Field(default=True)
    data: Any = Field(default=None)


class ListResponse(BaseModel):
    """Unpaginated list, e.g. all courses of one bootcamp."""

    success: bool = Field(default=True)
    count: int
    data: List[Dict[str, Any]]


class TokenResponse(BaseModel):
    success: bool = Field(default=True)
    token: str = Field(description="Signed access token (also set as the `token` cookie)")


class MessageResponse(BaseModel):
    success: bool = Field(default=True)
    data: str


# ══════════════════════════════════════════════════════════════════════════
# Error & Health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "success": false,
            "error": "not_found",
            "message": "Bootcamp not found with id of 5d725a1b-...",
            "details": {"resource": "bootcamp"},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    geocoder: str = Field(description="Geocoder status: available, unconfigured, circuit_open")
    uptime_seconds: float = Field(description="Seconds since service started")
