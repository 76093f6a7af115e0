"""
Core schemas - shared Pydantic models for API responses.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Human-readable error message")

    model_config = {"json_schema_extra": {"example": {"error": "Unauthorized"}}}


class SuccessResponse(BaseModel):
    """Acknowledgement for operations with no resource to return."""

    success: bool = True
