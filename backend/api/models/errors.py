"""
Error response models.

Standardized error responses for the API. Documents the body produced by
the handlers in api.errors.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable message")
    details: dict[str, Any] = Field(default_factory=dict)


class ValidationErrorDetails(BaseModel):
    fields: dict[str, list[str]]


class ValidationErrorResponse(BaseModel):
    """Validation error response format."""

    error: str = "VALIDATION_ERROR"
    message: str = "Validation failed"
    details: ValidationErrorDetails
