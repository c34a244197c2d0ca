"""Pydantic schemas for API responses."""

from pydantic import BaseModel
from typing import Any, Optional


class Envelope(BaseModel):
    """Response wrapper the browser client expects on every call."""

    success: bool
    data: Any = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check."""

    status: str
    data_source: str
    version: str
