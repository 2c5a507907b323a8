"""API models package."""

from .errors import ErrorResponse, ValidationErrorResponse

ERROR_RESPONSES = {
    400: {"model": ValidationErrorResponse},
    401: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
}

__all__ = [
    "ErrorResponse",
    "ValidationErrorResponse",
    "ERROR_RESPONSES",
]
