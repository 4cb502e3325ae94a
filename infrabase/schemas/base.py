# infrabase/schemas/base.py
"""
Base schemas for API responses
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ErrorResponse(BaseModel):
    """
    Standard error response
    Used for 4xx and 5xx responses
    """
    success: bool = False
    error: str
    error_code: str
    details: Optional[dict] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Could not find source machine 'alice' in database",
                "error_code": "MISSING_SOURCE_MACHINE",
                "details": {"source_machine": "alice"},
                "timestamp": "2025-12-26T10:00:00Z"
            }
        }


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = "healthy"
    service: str = "infrabase"
    version: str = "0.1.0"
    uptime_seconds: Optional[float] = None
    database: str = "connected"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
