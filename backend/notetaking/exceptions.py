"""
Note Taking API — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every error outcome the API has.
Why:   Services raise domain errors; global handlers in main.py turn them into
       HTTP responses. `context` is always logged; it is returned to the
       client as `details` only for ValidationError (the offending field) and
       RateLimitExceededError (retry_after). Every other error keeps it
       server-side.

Exception Hierarchy:
    NoteTakingError (base)
    ├── ValidationError          → 400 Bad Request
    ├── UnauthorizedError        → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error

NotFoundError is the same for "does not exist", "soft-deleted"
and "belongs to someone else": callers learn nothing about other users' notes.
"""

from typing import Any, Dict, Optional


class NoteTakingError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned as `details` only by
                  the 400 and 429 handlers)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteTakingError):
    """
    Business-rule validation failure the client can fix.

    Schema-level problems (missing fields, empty tag names) are rejected by
    pydantic with FastAPI's 422 before a handler runs; this one covers checks
    that need the request as a whole, e.g. a body id that contradicts the path.
    """

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


class UnauthorizedError(NoteTakingError):
    """Missing, malformed, expired or otherwise unusable credentials."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(NoteTakingError):
    """Requested resource is absent, soft-deleted, or not owned by the caller."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(NoteTakingError):
    """A unique key is already taken (e.g. email already registered)."""

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NoteTakingError):
    """
    Unexpected persistence failure.

    The message returned to the client is always generic. Constraint names,
    SQL and driver messages go to the server log through `context` only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NoteTakingError):
    """Client exceeded the per-IP auth rate limit."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many authentication attempts. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
