"""Exception handlers producing the JSON error envelope.

Every error leaving the API has the shape::

    {"success": false, "error": "<message>", "details": {...}}

``details`` is omitted when empty. Rate limit errors additionally carry
``retryAfter``.
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from roster.config import settings
from roster.core.errors.exceptions import AppException, RateLimitError


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()


class FieldError(BaseModel):
    """Represents a single field validation error."""

    field: str
    message: str
    type: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing request.

    Attributes:
        success: Always False
        error: Human-readable error message
        details: Additional structured information (field errors, ids)
        retry_after: Seconds until a rate limited client may retry
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    details: dict[str, Any] | None = None
    retry_after: int | None = Field(default=None, serialization_alias="retryAfter")


def _render(
    status_code: int,
    error: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    retry_after: int | None = None,
) -> JSONResponse:
    content = ErrorResponse(
        error=error,
        details=details or None,
        retry_after=retry_after,
    ).model_dump(exclude_none=True, by_alias=True)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application-specific exceptions.

    Converts AppException subclasses to the error envelope.
    """
    logger.warning(
        "app_exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        path=str(request.url.path),
        details=exc.details,
    )

    retry_after = exc.retry_after if isinstance(exc, RateLimitError) else None
    details = dict(exc.details)
    details.setdefault("code", exc.error_code)

    return _render(
        exc.status_code,
        exc.message,
        details=details,
        headers=exc.headers or None,
        retry_after=retry_after,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Field errors are listed under ``details.errors`` and the first message
    becomes the top-level ``error`` so simple clients can display it.
    """
    errors: list[FieldError] = []

    for error in exc.errors():
        # Build field path from location
        loc = error.get("loc", ())
        # Skip "body" prefix in field path
        field_parts = [str(part) for part in loc if part != "body"]
        field = ".".join(field_parts) if field_parts else "unknown"

        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        message = message.removeprefix("Value error, ")

        errors.append(FieldError(field=field, message=message, type=error.get("type")))

    logger.warning(
        "validation_error",
        path=str(request.url.path),
        error_count=len(errors),
    )

    return _render(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors[0].message if errors else "Request validation failed",
        details={
            "code": "validation_error",
            "errors": [e.model_dump(exclude_none=True) for e in errors],
        },
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle routing errors (unknown path, wrong method) raised by Starlette."""
    logger.info(
        "http_exception",
        path=str(request.url.path),
        status_code=exc.status_code,
    )
    return _render(
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Catches all unhandled exceptions and returns a generic 500 error.
    The actual error details are logged but only exposed outside production.
    """
    logger.exception(
        "unhandled_exception",
        path=str(request.url.path),
        error_type=type(exc).__name__,
    )

    details = None if settings.is_production else {"exception": str(exc)}
    return _render(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        details=details,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Call this function during app initialization:

        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(
        StarletteHTTPException, cast("ExceptionHandler", http_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)
