"""
Foundation API Backend — Health / Root Schemas
================================================
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Returned by GET /health.

    status is "healthy" (HTTP 200) when the database answers, "unhealthy"
    (HTTP 503) otherwise.
    """

    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Backend version")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since the process started")


class MessageResponse(BaseModel):
    message: str
