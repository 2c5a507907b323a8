"""
Error translation at the HTTP boundary.

Domain errors are mapped to status codes by their ErrorKind. Anything else
becomes an opaque 500 with the details logged server-side only.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.exceptions import ErrorKind, ProgressorError, RateLimitError
from modules.ratelimit import retry_after_seconds

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.EXTERNAL_SERVICE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


def error_response(error: ProgressorError) -> JSONResponse:
    """Build the JSON response for a domain error."""
    headers: dict[str, str] = {}
    if error.kind is ErrorKind.AUTHENTICATION:
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(error, RateLimitError):
        headers["Retry-After"] = str(retry_after_seconds(error.retry_after_ms))

    if error.kind is ErrorKind.INTERNAL:
        body = {"error": "INTERNAL_ERROR", "message": INTERNAL_ERROR_MESSAGE, "details": {}}
    else:
        body = error.to_dict()

    return JSONResponse(
        status_code=STATUS_BY_KIND[error.kind],
        content=body,
        headers=headers or None,
    )


def _clean_message(message: str) -> str:
    # pydantic prefixes messages raised from validators
    return message.removeprefix("Value error, ")


async def progressor_error_handler(request: Request, exc: ProgressorError) -> JSONResponse:
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        fields.setdefault(field, []).append(_clean_message(err.get("msg", "Invalid value")))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Validation failed",
            "details": {"fields": fields},
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "INTERNAL_ERROR", "message": INTERNAL_ERROR_MESSAGE, "details": {}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error handlers on an application."""
    app.add_exception_handler(ProgressorError, progressor_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
