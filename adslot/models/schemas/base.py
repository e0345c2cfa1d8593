"""
Base schemas used across the application.
"""
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field

class ResponseBase(BaseModel):
    """Envelope for write endpoints: outcome flag, message and an optional payload."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Optional[Dict[str, Any]] = None

class ErrorResponse(BaseModel):
    """Body returned for domain errors (see the exception handlers in main)."""
    success: bool = False
    error: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    request_id: str = "unknown"
