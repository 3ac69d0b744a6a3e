"""
Storefront Backend — Shared Schemas
=====================================

Error envelope and the status snapshot returned by GET /api/status.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.
    Why:   Clients need a consistent structure to parse errors programmatically.

    Example:
        {
            "error": "unauthorized",
            "message": "Authentication required",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MemoryUsage(BaseModel):
    used: str = Field(description="Resident memory of this process, e.g. '52.31 MB'")
    total: str = Field(description="Total system memory, e.g. '15953.12 MB'")


class StatusSnapshot(BaseModel):
    """
    What:  Health-check payload computed fresh on every request.

    The four optional fields are only filled outside production; the route
    serializes with `exclude_none` so they are absent (not null) in production.
    """
    status: Literal["ok"] = Field(default="ok")
    version: str = Field(description="Build version of the running service")
    environment: str = Field(description="Deployment environment name")
    timestamp: datetime = Field(description="Time the snapshot was taken (UTC)")
    uptime: Optional[str] = Field(default=None, description="Process uptime as '<h>h <m>m'")
    memory: Optional[MemoryUsage] = Field(default=None)
    platform: Optional[str] = Field(default=None, description="Platform identifier (sys.platform)")
    runtime_version: Optional[str] = Field(default=None, description="Python version")
