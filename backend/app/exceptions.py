"""
Flock Backend — Custom Exception Hierarchy
============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the session gate; caught by global handlers.

Exception Hierarchy:
    FlockError (base)
    ├── ValidationError                    → 400 Bad Request
    │   └── SelfReferenceNotAllowedError   → 400 Bad Request
    ├── InvalidCredentialsError            → 400 Bad Request
    ├── ConflictError                      → 400 Bad Request (duplicate handle/email)
    ├── UnauthenticatedError               → 401 Unauthorized (no session cookie)
    ├── InvalidTokenError                  → 401 Unauthorized (bad/expired token)
    ├── ForbiddenError                     → 401 Unauthorized (ownership violation)
    ├── NotFoundError                      → 404 Not Found
    │   └── IdentityNotFoundError          → 404 Not Found (token names a missing user)
    ├── ImageStorageError                  → 500 Internal Server Error
    └── DatabaseError                      → 500 Internal Server Error

`message` is always safe to return to the client. `context` is logged
server-side only.
"""

from typing import Any, Dict, Optional


class FlockError(Exception):
    """
    Base exception for all Flock application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FlockError):
    """
    Raised when client input fails a business rule.

    When:    Malformed email, short password, empty post, empty comment.
    HTTP:    400 Bad Request

    Schema-level problems (missing JSON fields, malformed UUIDs) are still
    answered by FastAPI's own 422 handler.
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


class SelfReferenceNotAllowedError(ValidationError):
    """Raised when an identity tries to follow or unfollow itself."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="You can't follow/unfollow yourself",
            field="id",
            context=context,
        )


class InvalidCredentialsError(FlockError):
    """
    Raised on a failed login.

    The same message is used whether the username is unknown or the password
    is wrong, so the response never tells which field was incorrect.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid username or password", context=context)


class ConflictError(FlockError):
    """
    Raised when a unique value is already taken or a concurrent write won.

    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthenticatedError(FlockError):
    """Raised when a protected route is called without a session cookie."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Unauthorized: No Token Provided", context=context)


class InvalidTokenError(FlockError):
    """Raised when the session token has a bad signature, is malformed, or expired."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Unauthorized: Invalid Token", context=context)


class ForbiddenError(FlockError):
    """
    Raised when the caller acts on a resource it does not own.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "You are not authorized to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(FlockError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records (not an exception); services
    convert None → NotFoundError so routes stay free of status-code logic.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class IdentityNotFoundError(NotFoundError):
    """Raised by the session gate when a valid token names a user that no longer exists."""

    def __init__(self, user_id: Optional[str] = None):
        super().__init__(resource="user", resource_id=user_id, message="User not found")


class ImageStorageError(FlockError):
    """
    Raised when hosting or releasing an image fails.

    When:    Disk full, permission denied, content sniffing failed.
    HTTP:    500 Internal Server Error (generic message, details logged)
    """

    def __init__(
        self,
        message: str = "Image storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(FlockError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic.
        Detailed error info (SQL, constraint names) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
