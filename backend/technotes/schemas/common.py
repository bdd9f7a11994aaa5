"""
TechNotes Backend - Shared Response Schemas
============================================

What:  Schemas shared by every router: the error body and the health report.
Who:   Referenced in route `responses=` declarations for OpenAPI docs.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecordSchema(BaseModel):
    """
    Base for outbound records.

    Field names are snake_case in Python and camelCase on the wire
    (`created_at` → `createdAt`); the identifier goes out as `_id`.
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MessageResponse(BaseModel):
    """
    Body of every 400 / 404 / 409 / 500 response.

    Example:
        {"message": "Username already taken."}
    """
    message: str = Field(description="Human-readable outcome description")


class HealthResponse(BaseModel):
    """Health check response showing service and storage status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    storage: str = Field(description="Storage reachability: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
