"""
Common API models shared across endpoints.
"""

from pydantic import BaseModel, Field
from typing import Dict

class HealthStatus(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    uptime: float = Field(..., description="Uptime in seconds")
    dependencies: Dict[str, str] = Field(..., description="Status of external dependencies")
