"""
Common schema types used across the API.
"""

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """Standard success response."""

    success: bool = True
    message: str = ""


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    modules_loaded: int = 0
    active_challenges: int = 0
