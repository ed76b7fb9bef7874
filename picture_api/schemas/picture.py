"""
Picture API — Pydantic Request/Response Schemas
=================================================

What:  Pydantic models defining the API contract of /api/picture.
Why:   Strict input validation, explicit serialization, and OpenAPI docs.
How:   Request bodies are validated against PictureCreate / PictureUpdate;
       responses are built as PictureResponse and serialized by alias
       (createdAt, updatedAt) to keep the camelCase wire format.

Design Decision:
    Schemas are separate from SQLAlchemy models because the wire format
    (restaurant as a bare id, camelCase timestamps) differs from the table
    layout (restaurant_id, created_at).
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models — JSON bodies sent by clients
# ══════════════════════════════════════════════════════════════════════════


class PictureCreate(BaseModel):
    """
    Body of a JSON (metadata only) POST /api/picture.

    Unknown keys such as id or createdAt are ignored: both are assigned
    server-side.
    """
    title: str = Field(min_length=1, max_length=255, description="Picture title")
    slug: Optional[str] = Field(
        default=None,
        max_length=512,
        description="Free-form identifier or path of the image",
    )
    restaurant: Optional[int] = Field(
        default=None,
        ge=1,
        description="Id of the restaurant owning the picture",
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        # "   " then fails min_length, like a blank multipart title
        return v.strip() if isinstance(v, str) else v


class PictureUpdate(BaseModel):
    """
    Body of a JSON PUT /api/picture/{id}.

    Every field is optional. Only the keys present in the body are applied;
    `model_fields_set` tells present-but-null apart from absent.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=512)
    restaurant: Optional[int] = Field(default=None, ge=1)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PictureResponse(BaseModel):
    """
    Resource representation of a picture.

    Example:
        {
            "id": 1,
            "title": "Sunset",
            "slug": "uploads/0c6f...-sunset.png",
            "restaurant": 1,
            "createdAt": "2024-01-15T12:00:00+00:00",
            "updatedAt": null
        }
    """
    id: int = Field(description="Store-assigned identifier")
    title: str = Field(description="Picture title")
    slug: Optional[str] = Field(default=None, description="Identifier or upload path")
    restaurant: Optional[int] = Field(default=None, description="Owning restaurant id")
    created_at: datetime = Field(alias="createdAt", description="Creation time (UTC, ISO 8601)")
    updated_at: Optional[datetime] = Field(
        default=None,
        alias="updatedAt",
        description="Last edit time (UTC, ISO 8601); null until the first edit",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        return _as_utc(value).isoformat()


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """Body of a 400 response, e.g. {"error": "Restaurant introuvable"}."""
    error: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and database status.
    Who:   Returned by GET /health for monitoring and load balancer checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
