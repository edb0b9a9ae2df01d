"""Common response schemas."""

from typing import Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: Dict[str, str]
