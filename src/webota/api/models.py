"""Pydantic models for device HTTP API responses."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class StatusInfo(BaseModel):
    """GET /status response (authenticated).

    Example:
        {"version": "1.2.3", "uptime": 3725}
    """

    version: str = Field(default="-", description="Running firmware version")
    uptime: int = Field(default=0, ge=0, description="Seconds since boot")

    @field_validator("version", mode="before")
    @classmethod
    def empty_version(cls, v):
        """Blank or null versions render as '-'."""
        return v or "-"

    @field_validator("uptime", mode="before")
    @classmethod
    def null_uptime(cls, v):
        return v or 0


class VersionInfo(BaseModel):
    """GET /version response (unauthenticated)."""

    version: Optional[str] = Field(None, description="OTA library version")


class ProgressSample(BaseModel):
    """GET /ota-progress response, read once per poll tick.

    A missing or null ``progress`` field means 0.
    """

    progress: int = Field(default=0, ge=0, le=100, description="Percentage (0-100)")

    @field_validator("progress", mode="before")
    @classmethod
    def default_progress(cls, v):
        return v or 0
