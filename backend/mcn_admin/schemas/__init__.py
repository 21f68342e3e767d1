"""
MCN Admin Dashboard - Pydantic Schemas
======================================
Request/Response schemas for the API layer.
"""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    redis: str
    uptime_seconds: float


class SuccessMessage(BaseModel):
    success: bool = True
