"""
Flock Backend — Shared Schema Building Blocks
===============================================

What:  Base model and the response shapes shared by every route module.

Wire format:
    The web client speaks camelCase with a Mongo-style `_id` key
    (`fullName`, `profileImg`, `likedPosts`, ...). APIModel generates the
    camelCase aliases; fields named `id` serialize as `_id`. Request bodies
    accept both camelCase and snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for every request/response model exchanged with the client."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. {"message": "Logged out successfully"}."""
    message: str = Field(description="Human-readable result")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "Password must be at least 6 characters long",
            "code": "validation_error",
            "message": "Password must be at least 6 characters long",
            "details": {"field": "password"},
            "request_id": "1f3a9c2e"
        }
    """
    error: str = Field(description="Human-readable error, shown to users by web clients")
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
