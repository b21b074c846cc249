"""
Pydantic schemas for stream records, status probes and links.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean(value: Any) -> Optional[str]:
    """Coerce scalar input to a stripped string, keeping None as None."""
    if value is None:
        return None
    return str(value).strip()


class StreamCreate(BaseModel):
    """Create payload. Presence of id/name is checked by the route so it can answer 400."""

    id: Optional[str] = Field(None, description="AceStream content id (immutable)")
    name: Optional[str] = Field(None, description="Display name")
    photo_url: Optional[str] = Field(None, description="Optional thumbnail URL")

    @field_validator("id", "name", "photo_url", mode="before")
    @classmethod
    def strip_values(cls, value: Any) -> Optional[str]:
        return _clean(value)


class StreamUpdate(BaseModel):
    name: Optional[str] = Field(None, description="Display name")
    photo_url: Optional[str] = Field(None, description="Optional thumbnail URL")

    @field_validator("name", "photo_url", mode="before")
    @classmethod
    def strip_values(cls, value: Any) -> Optional[str]:
        return _clean(value)


class StreamOut(BaseModel):
    id: str
    name: str
    photo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


StreamStatusLabel = Literal["online", "offline", "checking", "unknown"]


class StreamStatusOut(BaseModel):
    id: str = Field(..., description="Stream id that was probed")
    status: StreamStatusLabel = Field(..., description="Coarse availability classification")
    title: str = Field(..., description="Short human readable label")
    detail: str = Field("", description="Peers/speed summary or failure reason")


class StreamLinksOut(BaseModel):
    id: str
    hls_url: str = Field(..., description="Direct HLS manifest URL through the proxy")
    json_url: str = Field(..., description="JSON manifest info URL through the proxy")
