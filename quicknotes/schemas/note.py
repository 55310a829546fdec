"""
QuickNotes Backend — Note Request/Response Schemas
====================================================

What:  Pydantic models defining the notes API contract.
How:   FastAPI validates request bodies against these models, serializes
       responses through them, and generates the OpenAPI docs from them.

Design Decision:
    `title` is optional at the schema level so that a missing title reaches
    NoteService and comes back as a 400 `title is required` business error
    rather than FastAPI's generic 422.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteWrite(BaseModel):
    """
    Body of POST /api/notes and PUT /api/notes/{id}.

    PUT is a full replacement: omitted `content` becomes "" and omitted
    `tags` becomes [].
    """
    title: Optional[str] = Field(default=None, description="Note title (required)")
    content: Optional[str] = Field(default="", description="Free-form note body")
    tags: List[str] = Field(default_factory=list, description="Tags used by search")

    @field_validator("content", mode="before")
    @classmethod
    def default_content(cls, v: Any) -> Any:
        return v or ""

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> Any:
        """
        Anything that is not a JSON array is treated as no tags; inside an
        array, only string elements are kept (null and numbers are dropped).
        """
        if not isinstance(v, list):
            return []
        return [tag for tag in v if isinstance(tag, str)]


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    What:  Full representation of a note.
    Who:   Returned by every notes endpoint and stored (as JSON) in the
           search cache.
    """
    id: int = Field(description="Note identifier")
    user_id: int = Field(description="Owner's user identifier")
    title: str
    content: str
    tags: List[str]
    created_at: datetime = Field(description="Creation timestamp (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last update timestamp (UTC ISO 8601)")

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Error / Operational Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "title is required",
            "details": {"field": "title"},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check body: overall status plus each dependency's state."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    cache: str = Field(description="Redis connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
    instance: str = Field(description="Instance identifier (INSTANCE_ID)")
    environment: str = Field(description="Deployment environment")
    timestamp: datetime = Field(description="Server time of the check (UTC)")


class StatusResponse(BaseModel):
    message: str
    instance: str
    version: str
    environment: str
    timestamp: datetime
