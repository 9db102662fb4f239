"""
DevCamper API — Custom Exception Hierarchy
===========================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    DevCamperError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── DuplicateError           → 400 Bad Request (unique field already taken)
    ├── AuthenticationError      → 401 Unauthorized (no / bad credentials)
    ├── NotAuthorizedError       → 401 Unauthorized (not the record owner)
    ├── ForbiddenError           → 403 Forbidden (role not allowed)
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    ├── EmailDeliveryError       → 500 Internal Server Error
    ├── GeocoderError            → 503 Service Unavailable
    └── CircuitBreakerOpenError  → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class DevCamperError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DevCamperError):
    """
    Raised when client input fails validation.

    When:    Bad filter value for a column type, missing login fields,
             invalid upload, address that cannot be geocoded.
    HTTP:    400 Bad Request

    FastAPI already answers schema violations with 422; this one is for
    rules checked by the services.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DuplicateError(DevCamperError):
    """
    Raised when an insert or update violates a unique constraint.

    When:    Bootcamp name taken, email already registered, second review
             of the same bootcamp by one user.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "duplicate_error"

    def __init__(
        self,
        message: str = "Duplicate field value entered",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(DevCamperError):
    """
    Raised when a request carries no valid credential.

    When:    Missing token, bad signature, expired token, deleted user,
             wrong email/password on login.
    HTTP:    401 Unauthorized
    """

    status_code = 401
    error_code = "not_authenticated"

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotAuthorizedError(DevCamperError):
    """
    Raised when an authenticated user touches a record they do not own.

    HTTP:    401 Unauthorized. Admins bypass ownership checks.
    """

    status_code = 401
    error_code = "not_authorized"

    def __init__(
        self,
        user_id: Optional[str] = None,
        action: str = "access this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"User {user_id} is not authorized to {action}" if user_id else f"Not authorized to {action}"
        ctx = context or {}
        if user_id:
            ctx["user_id"] = user_id
        super().__init__(message=message, context=ctx)


class ForbiddenError(DevCamperError):
    """
    Raised when the user's role is not in the route's allowed roles.

    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        role: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"User role {role} is not authorized to access this route"
        ctx = context or {}
        ctx["role"] = role
        super().__init__(message=message, context=ctx)


class NotFoundError(DevCamperError):
    """
    Raised when a requested resource does not exist.

    Why a custom exception:
        SQLAlchemy returns None for missing records (not an exception).
        Services convert None → NotFoundError to keep HTTP concerns out of
        the service logic while still producing a 404.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(DevCamperError):
    """
    Raised when photo uploads cannot be written to disk.

    HTTP:    500. The response never includes file system paths.
    """

    error_code = "server_error"

    def __init__(
        self,
        message: str = "Problem with file upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(DevCamperError):
    """
    Raised when the SMTP relay is unconfigured or rejects a message.

    HTTP:    500
    """

    error_code = "email_error"

    def __init__(
        self,
        message: str = "Email could not be sent",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GeocoderError(DevCamperError):
    """
    Raised when the geocoding API fails after all retries.

    HTTP:    503 Service Unavailable; `retry_after` becomes a Retry-After header.
    """

    status_code = 503
    error_code = "geocoder_error"

    def __init__(
        self,
        message: str = "Geocoding service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(DevCamperError):
    """
    Raised when the geocoder circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for M seconds)
        → After M seconds → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    """

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Geocoding service is temporarily unavailable due to repeated failures. "
            f"Retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(DevCamperError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
