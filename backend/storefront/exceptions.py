"""
Storefront Backend — Custom Exception Hierarchy
=================================================

What:  The errors services, guards and the route table raise on purpose.
How:   Every class declares the HTTP `status_code` and machine-readable
       `error_code` it maps to, and carries a user-facing message plus a
       context dict. One handler in main.py turns any of them into the JSON
       error envelope, so each failure is answered by the request it belongs to.
Who:   Raised by services, guards and the route table; caught by main.py.

Exception Hierarchy:
    StorefrontError (base)                 → 500
    ├── ValidationError                    → 400 Bad Request
    ├── AuthenticationError                → 401 Unauthorized
    ├── PermissionDeniedError              → 403 Forbidden
    ├── NotFoundError                      → 404 Not Found
    │   └── EndpointNotConfiguredError     → 404 Not Found (route table carve-out)
    ├── ConflictError                      → 409 Conflict
    ├── RateLimitExceededError             → 429 Too Many Requests
    ├── FileStorageError                   → 500 Internal Server Error
    └── DatabaseError                      → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """
    Base exception for all Storefront application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned where noted)
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


class ValidationError(StorefrontError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (wrong types, missing fields) are reported by
    FastAPI itself with 422; this one covers rules only a service can check,
    e.g. an unsupported image extension or an order quantity above stock.
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


class AuthenticationError(StorefrontError):
    """
    Raised by the authentication guard when credentials are missing or invalid.

    HTTP: 401 with `WWW-Authenticate: Bearer`. The downstream handler never runs.
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(StorefrontError):
    """Authenticated, but not allowed to perform this operation."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(StorefrontError):
    """
    Raised when a requested resource does not exist.

    Services turn `None` results into this so routes stay free of status codes.
    Resources owned by another user are reported the same way, so their
    existence is not leaked.
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
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class EndpointNotConfiguredError(NotFoundError):
    """
    Raised when the route table could not locate a carved-out sub-handler.

    What:    A handler group was expected to expose e.g. `POST /login`, but the
             lookup at composition time found nothing.
    HTTP:    404, body `{"error": "endpoint_not_configured", ...}`.
    Why 404 and not 500: the process is healthy; only this endpoint is missing.
    """

    error_code = "endpoint_not_configured"

    def __init__(self, endpoint: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["endpoint"] = endpoint
        StorefrontError.__init__(
            self,
            message=f"{endpoint} endpoint not configured properly",
            context=ctx,
        )
        self.endpoint = endpoint


class ConflictError(StorefrontError):
    """Raised when a write would violate a uniqueness or reference rule."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The request conflicts with the current state of the resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(StorefrontError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500; the file system path stays in the server log only.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StorefrontError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; SQL details
    are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(StorefrontError):
    """Raised when a client exceeds the per-IP request rate limit (429)."""

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
