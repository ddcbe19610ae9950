"""Error handling module with the JSON error envelope."""

from roster.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from roster.core.errors.handlers import (
    ErrorResponse,
    FieldError,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "BadRequestError",
    "ConflictError",
    "DatabaseError",
    # Handlers
    "ErrorResponse",
    "FieldError",
    "ForbiddenError",
    "NotFoundError",
    "RateLimitError",
    "ServiceUnavailableError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
